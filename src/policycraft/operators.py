"""Operator semantics table shared by the renderer and condition evaluation.

Each operator code maps to one OperatorSpec carrying its human-readable
phrase and its evaluation rule. Unknown codes resolve to ``equals``.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable

from policycraft.models import DataType, DateRange

logger = logging.getLogger(__name__)

DEFAULT_OPERATOR = "equals"
DEFAULT_COLLECTION_OPERATOR = "in"


@dataclass(frozen=True)
class OperatorSpec:
    """A single entry in the operator table.

    Attributes:
        code: Operator code stored on conditions (e.g. "not_in").
        phrase: Phrase used when rendering a condition.
        evaluate: Predicate ``(actual, expected) -> bool``.
    """

    code: str
    phrase: str
    evaluate: Callable[[Any, Any], bool]


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def parse_date(value: Any) -> datetime | None:
    """Parse a date-like value into a naive UTC datetime.

    Accepts datetime and date objects, ISO 8601 strings (a trailing ``Z``
    is allowed) and ``MM/DD/YYYY`` strings. Returns None when the value
    cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text, "%m/%d/%Y")
            except ValueError:
                return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    if actual == expected:
        return True
    left, right = _to_number(actual), _to_number(expected)
    return left is not None and right is not None and left == right


def _in(actual: Any, expected: Any) -> bool:
    return any(_equals(actual, candidate) for candidate in _as_list(expected))


def _includes(actual: Any, expected: Any) -> bool:
    held = _as_list(actual)
    return any(
        any(_equals(item, wanted) for item in held) for wanted in _as_list(expected)
    )


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        return isinstance(expected, str) and expected in actual
    if isinstance(actual, (list, tuple, set, frozenset)):
        return any(_equals(item, expected) for item in actual)
    return False


def _numeric(compare: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def _evaluate(actual: Any, expected: Any) -> bool:
        left, right = _to_number(actual), _to_number(expected)
        if left is None or right is None:
            return False
        return compare(left, right)

    return _evaluate


def _dated(compare: Callable[[datetime, datetime], bool]) -> Callable[[Any, Any], bool]:
    def _evaluate(actual: Any, expected: Any) -> bool:
        left, right = parse_date(actual), parse_date(expected)
        if left is None or right is None:
            return False
        return compare(left, right)

    return _evaluate


def range_bounds(expected: Any) -> tuple[Any, Any] | None:
    """Extract ``(start, end)`` from a DateRange, mapping or 2-sequence."""
    if isinstance(expected, DateRange):
        return expected.start, expected.end
    if isinstance(expected, dict) and "start" in expected and "end" in expected:
        return expected["start"], expected["end"]
    if isinstance(expected, (list, tuple)) and len(expected) == 2:
        return expected[0], expected[1]
    return None


def _between(actual: Any, expected: Any) -> bool:
    bounds = range_bounds(expected)
    if bounds is None:
        return False
    start, end = bounds

    numbers = [_to_number(v) for v in (actual, start, end)]
    if all(n is not None for n in numbers):
        return numbers[1] <= numbers[0] <= numbers[2]

    dates = [parse_date(v) for v in (actual, start, end)]
    if all(d is not None for d in dates):
        return dates[1] <= dates[0] <= dates[2]
    return False


def _negate(predicate: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    return lambda actual, expected: not predicate(actual, expected)


OPERATORS: dict[str, OperatorSpec] = {
    spec.code: spec
    for spec in (
        OperatorSpec("equals", "is", _equals),
        OperatorSpec("not_equals", "is not", _negate(_equals)),
        OperatorSpec("in", "is one of", _in),
        OperatorSpec("not_in", "is not one of", _negate(_in)),
        OperatorSpec("includes", "includes", _includes),
        OperatorSpec("not_includes", "does not include", _negate(_includes)),
        OperatorSpec("contains", "contains", _contains),
        OperatorSpec("not_contains", "does not contain", _negate(_contains)),
        OperatorSpec("greater_than", "is greater than", _numeric(lambda a, b: a > b)),
        OperatorSpec("less_than", "is less than", _numeric(lambda a, b: a < b)),
        OperatorSpec(
            "greater_than_or_equal",
            "is greater than or equal to",
            _numeric(lambda a, b: a >= b),
        ),
        OperatorSpec(
            "less_than_or_equal",
            "is less than or equal to",
            _numeric(lambda a, b: a <= b),
        ),
        OperatorSpec("before", "is before", _dated(lambda a, b: a < b)),
        OperatorSpec("after", "is after", _dated(lambda a, b: a > b)),
        OperatorSpec("on_or_before", "is on or before", _dated(lambda a, b: a <= b)),
        OperatorSpec("on_or_after", "is on or after", _dated(lambda a, b: a >= b)),
        OperatorSpec("between", "is between", _between),
    )
}

_EQUALITY = ("equals", "not_equals")

OPERATORS_BY_DATA_TYPE: dict[DataType, tuple[str, ...]] = {
    DataType.ARRAY: ("includes", "not_includes"),
    DataType.NUMBER: _EQUALITY
    + (
        "greater_than",
        "less_than",
        "greater_than_or_equal",
        "less_than_or_equal",
        "between",
    ),
    DataType.STRING: _EQUALITY + ("contains",),
    DataType.DATE: _EQUALITY
    + ("before", "after", "on_or_before", "on_or_after", "between"),
}


def resolve_operator(code: str | None) -> OperatorSpec:
    """Return the table entry for an operator code, treating unknown codes as equals."""
    spec = OPERATORS.get(code or "")
    if spec is None:
        if code:
            logger.debug("Unrecognized operator %r treated as equals", code)
        return OPERATORS[DEFAULT_OPERATOR]
    return spec


def phrase_for(code: str | None) -> str:
    """Return the rendering phrase for an operator code."""
    return resolve_operator(code).phrase


def default_operator(value: Any) -> str:
    """Infer the operator for a condition that omits one."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return DEFAULT_COLLECTION_OPERATOR
    return DEFAULT_OPERATOR


def operators_for_data_type(data_type: DataType) -> tuple[str, ...]:
    """Return the operator codes offered for an attribute's data type."""
    return OPERATORS_BY_DATA_TYPE.get(data_type, _EQUALITY)


def evaluate(code: str | None, actual: Any, expected: Any) -> bool:
    """Evaluate ``actual <operator> expected``.

    Never raises: values that cannot be compared evaluate to False.
    """
    return resolve_operator(code).evaluate(actual, expected)
