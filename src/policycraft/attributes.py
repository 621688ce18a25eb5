"""Attribute registry helpers: category resolution and picklist upkeep."""

import dataclasses
import re
from typing import Iterable

from policycraft.errors import AttributeValueError
from policycraft.models import Attribute, AttributeCategory

_ID_UNSAFE = re.compile(r"[^a-zA-Z0-9_]")
_DISPLAY_NAME = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")


def attribute_has_category(
    attribute: Attribute, category: AttributeCategory | str
) -> bool:
    """Check whether an attribute belongs to a category.

    A non-empty ``categories`` field wins. The legacy ``category`` field is
    consulted only when ``categories`` is empty, and an attribute with
    neither belongs to no category.
    """
    try:
        wanted = AttributeCategory(category)
    except ValueError:
        return False
    if attribute.categories:
        return wanted in attribute.categories
    if attribute.category is not None:
        return attribute.category == wanted
    return False


def attributes_for_category(
    attributes: Iterable[Attribute] | None,
    category: AttributeCategory | str,
    active_only: bool = True,
) -> list[Attribute]:
    """Return the attributes offered as conditions for a category."""
    return [
        a
        for a in attributes or []
        if attribute_has_category(a, category) and (a.active or not active_only)
    ]


def attribute_id_from_display_name(display_name: str) -> str:
    """Derive a stable identifier from a display name."""
    return _ID_UNSAFE.sub("_", display_name.lower())


def validate_attribute_display_name(display_name: str) -> str:
    """Return an error message for an invalid display name, or ""."""
    if not display_name:
        return "Display name is required"
    if " " in display_name:
        return "Display name cannot contain spaces"
    if not _DISPLAY_NAME.match(display_name):
        return (
            "Display name must start with a letter and contain only letters, "
            "numbers, and underscores"
        )
    return ""


def add_enum_value(attribute: Attribute, raw_value: str) -> Attribute:
    """Append a new permitted value to an attribute's picklist.

    Args:
        attribute: The attribute to extend. It is not modified.
        raw_value: The value typed by the author.

    Returns:
        A copy of the attribute with the value appended.

    Raises:
        AttributeValueError: If the trimmed value is empty or already
            present (compared case-insensitively).
    """
    value = raw_value.strip()
    if not value:
        raise AttributeValueError("Value cannot be empty")

    existing = list(attribute.constraints.enum_values or [])
    if any(str(v).lower() == value.lower() for v in existing):
        raise AttributeValueError(
            f'The value "{value}" already exists for this attribute'
        )

    constraints = dataclasses.replace(
        attribute.constraints, enum_values=existing + [value]
    )
    return dataclasses.replace(attribute, constraints=constraints)
