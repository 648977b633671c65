"""
Operator registry for visibility conditions.

Each operator compares a subject value (an attribute read from the
subject context, possibly absent) against one or two operands taken from
the content item settings. Operators never raise: unparseable input and
unknown operator names both evaluate to False so that content stays
hidden on ambiguous configuration.
"""

import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from shared.logging import get_logger


logger = get_logger("visibility.operators")

OperatorFunc = Callable[[Any, Any, Any], bool]

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


class Operator(str, Enum):
    """Condition operator names as stored in content settings."""
    NONE = "none"
    EMPTY = "empty"
    NOT_EMPTY = "not_empty"
    SPECIFIC_VALUE = "specific_value"
    SPECIFIC_VALUE_MULTIPLE = "specific_value_multiple"
    NOT_SPECIFIC_VALUE = "not_specific_value"
    CONTAIN = "contain"
    NOT_CONTAIN = "not_contain"
    IS_BETWEEN = "is_between"
    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    IS_ARRAY = "is_array"
    IS_ARRAY_AND_CONTAINS = "is_array_and_contains"


def is_numeric(value: Any) -> bool:
    """Return True for ints, floats and numeric strings. Booleans are not numeric."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value == value and value not in (float("inf"), float("-inf"))
    if isinstance(value, str):
        return bool(_NUMERIC_RE.match(value))
    return False


def to_int(value: Any) -> int:
    """Truncate a numeric value toward zero. Callers check is_numeric first."""
    if isinstance(value, str):
        return int(float(value.strip()))
    return int(value)


def is_empty(value: Any) -> bool:
    """Emptiness the way stored attributes are judged: None, "", "0", 0, False and empty containers."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == "" or value == "0"
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def split_values(value: Any) -> List[str]:
    """Split a comma separated operand into its items."""
    text = _operand_text(value)
    if text is None:
        return []
    return text.split(",")


def _subject_text(value: Any) -> Optional[str]:
    # Absent attributes read as the empty string
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _operand_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _op_none(subject: Any, value: Any, value_2: Any) -> bool:
    return True


def _op_empty(subject: Any, value: Any, value_2: Any) -> bool:
    return is_empty(subject)


def _op_not_empty(subject: Any, value: Any, value_2: Any) -> bool:
    return not is_empty(subject)


def _op_specific_value(subject: Any, value: Any, value_2: Any) -> bool:
    operand = _operand_text(value)
    if operand is None or not isinstance(subject, str):
        return False
    return subject == operand


def _op_specific_value_multiple(subject: Any, value: Any, value_2: Any) -> bool:
    if not isinstance(subject, str):
        return False
    return subject in split_values(value)


def _op_not_specific_value(subject: Any, value: Any, value_2: Any) -> bool:
    return not _op_specific_value(subject, value, value_2)


def _op_contain(subject: Any, value: Any, value_2: Any) -> bool:
    text = _subject_text(subject)
    operand = _operand_text(value)
    if text is None or operand is None:
        return False
    return operand in text


def _op_not_contain(subject: Any, value: Any, value_2: Any) -> bool:
    text = _subject_text(subject)
    operand = _operand_text(value)
    if text is None or operand is None:
        return False
    return operand not in text


def _op_is_between(subject: Any, value: Any, value_2: Any) -> bool:
    if not (is_numeric(subject) and is_numeric(value) and is_numeric(value_2)):
        return False
    return to_int(value) <= to_int(subject) <= to_int(value_2)


def _op_less_than(subject: Any, value: Any, value_2: Any) -> bool:
    if not (is_numeric(subject) and is_numeric(value)):
        return False
    return to_int(subject) < to_int(value)


def _op_greater_than(subject: Any, value: Any, value_2: Any) -> bool:
    if not (is_numeric(subject) and is_numeric(value)):
        return False
    return to_int(subject) > to_int(value)


def _op_is_array(subject: Any, value: Any, value_2: Any) -> bool:
    return isinstance(subject, (list, tuple))


def _op_is_array_and_contains(subject: Any, value: Any, value_2: Any) -> bool:
    if not isinstance(subject, (list, tuple)):
        return False
    wanted = set(split_values(value))
    items = {_subject_text(item) for item in subject if item is not None}
    items.discard(None)
    return bool(items & wanted)


OPERATORS: Dict[str, OperatorFunc] = {
    Operator.NONE.value: _op_none,
    Operator.EMPTY.value: _op_empty,
    Operator.NOT_EMPTY.value: _op_not_empty,
    Operator.SPECIFIC_VALUE.value: _op_specific_value,
    Operator.SPECIFIC_VALUE_MULTIPLE.value: _op_specific_value_multiple,
    Operator.NOT_SPECIFIC_VALUE.value: _op_not_specific_value,
    Operator.CONTAIN.value: _op_contain,
    Operator.NOT_CONTAIN.value: _op_not_contain,
    Operator.IS_BETWEEN.value: _op_is_between,
    Operator.LESS_THAN.value: _op_less_than,
    Operator.GREATER_THAN.value: _op_greater_than,
    Operator.IS_ARRAY.value: _op_is_array,
    Operator.IS_ARRAY_AND_CONTAINS.value: _op_is_array_and_contains,
}


def register_operator(name: str, func: OperatorFunc) -> None:
    """Register an additional operator, replacing any existing one with the same name."""
    OPERATORS[name] = func
    logger.info("Operator registered", operator=name)


def evaluate_operator(operator: Any, subject: Any, value: Any = None, value_2: Any = None) -> bool:
    """Evaluate one operator. Unknown operators and internal errors yield False."""
    name = operator.value if isinstance(operator, Operator) else operator
    func = OPERATORS.get(name) if isinstance(name, str) else None

    if func is None:
        logger.warning("Unknown condition operator", operator=name)
        return False

    try:
        return bool(func(subject, value, value_2))
    except Exception as e:
        logger.error("Error evaluating operator", operator=name, error=str(e))
        return False
