"""Small string combinators used to render conditions and policies."""

from typing import Any, Iterable, Sequence

from policycraft.conditions import active_conditions
from policycraft.models import Attribute, AttributeCondition, DataType, DateRange
from policycraft.operators import parse_date, phrase_for, range_bounds

DATE_FORMAT = "%m/%d/%Y"
DATETIME_FORMAT = "%m/%d/%Y %I:%M %p"


def join_with_oxford_and(items: Sequence[str]) -> str:
    """Join items as "A", "A and B" or "A, B, and C"."""
    items = list(items)
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


def format_date(value: Any, include_time: bool = False) -> str:
    """Render a date as MM/DD/YYYY, optionally with HH:MM AM/PM.

    Unparseable values are rendered as their raw string.
    """
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime(DATETIME_FORMAT if include_time else DATE_FORMAT)


def _format_scalar(value: Any, attribute: Attribute | None) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if attribute is not None and attribute.data_type == DataType.DATE:
        return format_date(value, attribute.date_config.include_time)
    return str(value)


def format_value(
    value: Any, attribute: Attribute | None = None, operator: str | None = None
) -> str:
    """Render a condition value.

    Collections are joined with " or "; ranges used by ``between`` are
    rendered as "<start> and <end>".
    """
    if operator == "between" or isinstance(value, (DateRange, dict)):
        bounds = range_bounds(value)
        if bounds is not None:
            return " and ".join(_format_scalar(v, attribute) for v in bounds)
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=str)
    if isinstance(value, (list, tuple)):
        return " or ".join(_format_scalar(item, attribute) for item in value)
    return _format_scalar(value, attribute)


def format_condition(
    condition: AttributeCondition, attribute: Attribute | None = None
) -> str:
    """Render one condition as "<label> <phrase> <value>".

    The label is the attribute's display name lowercased, or the raw
    condition name when the attribute is unknown.
    """
    if attribute is not None and attribute.display_name:
        label = attribute.display_name
    else:
        label = condition.name
    phrase = phrase_for(condition.operator)
    value = format_value(condition.value, attribute, condition.operator)
    return f"{label.lower()} {phrase} {value}"


def _attribute_index(attributes: Iterable[Attribute]) -> dict[str, Attribute]:
    index: dict[str, Attribute] = {}
    for attribute in attributes:
        index.setdefault(attribute.id, attribute)
    for attribute in attributes:
        index.setdefault(attribute.name, attribute)
    return index


def format_conditions(
    conditions: Iterable[AttributeCondition],
    attributes: Iterable[Attribute] = (),
) -> str:
    """Render active conditions as a conjunctive clause list.

    The last clause of two or more is prefixed with "and"; an empty or
    fully inactive list renders as "".
    """
    index = _attribute_index(list(attributes))
    clauses = [
        format_condition(condition, index.get(condition.name))
        for condition in active_conditions(conditions)
    ]
    if len(clauses) > 1:
        clauses[-1] = f"and {clauses[-1]}"
    return ", ".join(clauses)
