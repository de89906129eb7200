"""
Value comparison shared by the condition and switch nodes.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Union

from node_sdk.errors import NodeConfigurationError


Number = Union[int, float]


def to_number(value: Any) -> Number:
    """
    Convert value to number.

    Raises:
        NodeConfigurationError: If the value is not numeric
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            pass
    raise NodeConfigurationError(f"Expected a number, got {value!r}")


def _is_number_like(value: Any) -> bool:
    try:
        to_number(value)
    except NodeConfigurationError:
        return False
    return value is not None and value != ""


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def loose_equals(left: Any, right: Any) -> bool:
    """Equality across the string/number boundary of editor config fields."""
    if left == right:
        return True
    if _is_number_like(left) and _is_number_like(right):
        return to_number(left) == to_number(right)
    return _text(left) == _text(right)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _contains(container: Any, item: Any) -> bool:
    if isinstance(container, (list, tuple, set)):
        return any(loose_equals(element, item) for element in container)
    if isinstance(container, dict):
        return _text(item) in container
    return _text(item) in _text(container)


def _regex(value: Any, pattern: Any) -> bool:
    try:
        return re.search(_text(pattern), _text(value)) is not None
    except re.error as e:
        raise NodeConfigurationError(f"Invalid regular expression {pattern!r}: {e}") from e


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": loose_equals,
    "notEquals": lambda v1, v2: not loose_equals(v1, v2),
    "greaterThan": lambda v1, v2: to_number(v1) > to_number(v2),
    "greaterThanOrEqual": lambda v1, v2: to_number(v1) >= to_number(v2),
    "lessThan": lambda v1, v2: to_number(v1) < to_number(v2),
    "lessThanOrEqual": lambda v1, v2: to_number(v1) <= to_number(v2),
    "contains": _contains,
    "notContains": lambda v1, v2: not _contains(v1, v2),
    "startsWith": lambda v1, v2: _text(v1).startswith(_text(v2)),
    "endsWith": lambda v1, v2: _text(v1).endswith(_text(v2)),
    "isEmpty": lambda v1, v2=None: is_empty(v1),
    "isNotEmpty": lambda v1, v2=None: not is_empty(v1),
    "regex": _regex,
}


def compare(operator: str, left: Any, right: Any = None) -> bool:
    """
    Evaluate ``left <operator> right``.

    Raises:
        NodeConfigurationError: Unknown operator, or operands the operator cannot compare
    """
    try:
        operation = OPERATORS[operator]
    except KeyError:
        raise NodeConfigurationError(
            f"Unknown operator '{operator}'. Expected one of: {', '.join(OPERATORS)}"
        ) from None
    return operation(left, right)


__all__ = ["OPERATORS", "compare", "is_empty", "loose_equals", "to_number"]
