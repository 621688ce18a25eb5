"""Condition sets: assembling, filtering and validating attribute conditions."""

import logging
import re
from typing import Any, Iterable

from policycraft.models import (
    Attribute,
    AttributeCondition,
    DataType,
    DateRange,
)
from policycraft.operators import default_operator, evaluate, parse_date, range_bounds

logger = logging.getLogger(__name__)


def is_active(value: Any) -> bool:
    """Return False for the "no value" sentinels None and ""."""
    return value is not None and value != ""


def active_conditions(
    conditions: Iterable[AttributeCondition] | None,
) -> list[AttributeCondition]:
    """Drop inactive conditions, preserving order."""
    return [c for c in conditions or [] if is_active(c.value)]


def _check_scalar(attribute: Attribute, value: Any) -> str:
    constraints = attribute.constraints
    data_type = attribute.data_type

    if data_type == DataType.NUMBER:
        if isinstance(value, bool):
            return "Value must be a number"
        try:
            number = float(value)
        except (TypeError, ValueError):
            return "Value must be a number"
        if constraints.min_value is not None and number < constraints.min_value:
            return f"Value must be at least {constraints.min_value:g}"
        if constraints.max_value is not None and number > constraints.max_value:
            return f"Value cannot exceed {constraints.max_value:g}"
        return ""

    if data_type == DataType.DATE:
        if parse_date(value) is None:
            return "Value must be a valid date"
        return ""

    if data_type == DataType.BOOLEAN:
        if isinstance(value, bool) or str(value).lower() in ("true", "false"):
            return ""
        return "Value must be true or false"

    text = str(value)
    if constraints.min_length is not None and len(text) < constraints.min_length:
        return f"Value must be at least {constraints.min_length} characters"
    if constraints.max_length is not None and len(text) > constraints.max_length:
        return f"Value cannot exceed {constraints.max_length} characters"
    if constraints.pattern and re.fullmatch(constraints.pattern, text) is None:
        return "Value does not match the required pattern"
    return ""


def validate_condition_value(
    attribute: Attribute, value: Any, operator: str | None = None
) -> str:
    """Check a raw condition value against an attribute's constraints.

    Single-value attributes take a scalar and multi-value attributes take
    a collection; ranges are exempt from that rule.

    Args:
        attribute: The attribute the condition is on.
        value: The raw value entered by the author.
        operator: The condition's operator. Under ``between`` a two-item
            list is read as a range.

    Returns:
        A field-scoped error message, or "" when the value is acceptable.
        Inactive values are always acceptable.
    """
    if not is_active(value):
        return ""

    if operator == "between" and isinstance(value, (list, tuple)):
        bounds = range_bounds(value)
        value = DateRange(*bounds) if bounds else {}

    if isinstance(value, (DateRange, dict)):
        bounds = range_bounds(value)
        if bounds is None:
            return "Range must have a start and an end"
        if attribute.data_type not in (DataType.DATE, DataType.NUMBER):
            return "Ranges are only supported for date and number attributes"
        for bound in bounds:
            message = _check_scalar(attribute, bound)
            if message:
                return message
        return ""

    is_collection = isinstance(value, (list, tuple, set))
    if is_collection and not attribute.is_multi_value:
        return "Value must be a single value"
    if not is_collection and attribute.is_multi_value:
        return "Value must be a list of values"

    values = list(value) if is_collection else [value]
    if not values:
        return ""

    enum_values = attribute.constraints.enum_values
    if enum_values:
        for item in values:
            if not evaluate("in", item, enum_values):
                allowed = ", ".join(str(v) for v in enum_values)
                return f"Value must be one of: {allowed}"
        return ""

    for item in values:
        message = _check_scalar(attribute, item)
        if message:
            return message
    return ""


class ConditionSet:
    """Ordered attribute selection plus the values entered for it.

    Selection order is the order of clauses in the rendered sentence.
    Deselecting an attribute also drops its value and operator.

    Attributes:
        attributes: Selected attributes in insertion order.
        values: Raw values keyed by attribute id.
        operators: Explicit operators keyed by attribute id.
    """

    def __init__(self, attributes: Iterable[Attribute] = ()) -> None:
        self.attributes: list[Attribute] = []
        self.values: dict[str, Any] = {}
        self.operators: dict[str, str] = {}
        for attribute in attributes:
            self.select(attribute)

    def __len__(self) -> int:
        return len(self.attributes)

    def is_selected(self, attribute_id: str) -> bool:
        return any(a.id == attribute_id for a in self.attributes)

    def select(self, attribute: Attribute) -> None:
        """Append an attribute to the selection if it is not already there."""
        if not self.is_selected(attribute.id):
            self.attributes.append(attribute)

    def deselect(self, attribute_id: str) -> None:
        """Remove an attribute and its stored value and operator."""
        self.attributes = [a for a in self.attributes if a.id != attribute_id]
        self.values.pop(attribute_id, None)
        self.operators.pop(attribute_id, None)

    def set_selection(self, attributes: Iterable[Attribute]) -> None:
        """Replace the selection, dropping values of removed attributes."""
        new = list(attributes)
        kept = {a.id for a in new}
        for attribute in list(self.attributes):
            if attribute.id not in kept:
                self.deselect(attribute.id)
        self.attributes = [a for a in self.attributes if a.id in kept]
        for attribute in new:
            self.select(attribute)

    def set_value(self, attribute_id: str, value: Any) -> None:
        """Store a raw value for a selected attribute."""
        if not self.is_selected(attribute_id):
            logger.debug("Ignoring value for unselected attribute %s", attribute_id)
            return
        self.values[attribute_id] = value

    def set_operator(self, attribute_id: str, operator: str) -> None:
        """Store an explicit operator for a selected attribute."""
        if not self.is_selected(attribute_id):
            logger.debug("Ignoring operator for unselected attribute %s", attribute_id)
            return
        self.operators[attribute_id] = operator

    def conditions(self) -> list[AttributeCondition]:
        """Build the active conditions in selection order.

        Conditions without an explicit operator get the default inferred
        from their value.
        """
        built = []
        for attribute in self.attributes:
            value = self.values.get(attribute.id)
            operator = self.operators.get(attribute.id) or default_operator(value)
            built.append(AttributeCondition(attribute.name, operator, value))
        return active_conditions(built)

    def errors(self) -> dict[str, str]:
        """Return validation messages keyed by attribute id."""
        messages = {}
        for attribute in self.attributes:
            message = validate_condition_value(
                attribute,
                self.values.get(attribute.id),
                self.operators.get(attribute.id),
            )
            if message:
                messages[attribute.id] = message
        return messages
