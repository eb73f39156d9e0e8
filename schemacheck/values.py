"""The JSON value model.

Instances and schemas are plain Python values as produced by ``json.loads``.
This module classifies them into the six JSON kinds and implements the
structural equality used by enum, const and uniqueItems.
"""

from typing import Any, Hashable, List

NULL = 'null'
BOOLEAN = 'boolean'
NUMBER = 'number'
STRING = 'string'
ARRAY = 'array'
OBJECT = 'object'

JSON_KINDS = (NULL, BOOLEAN, NUMBER, STRING, ARRAY, OBJECT)

# Names accepted by the "type" keyword; "integer" is a refinement of number.
TYPE_NAMES = JSON_KINDS + ('integer',)


def kind_of(value: Any) -> str:
    """Returns the JSON kind of a value.

    Args:
        value: A JSON value

    Returns:
        One of null, boolean, number, string, array or object

    Raises:
        TypeError: If the value is not a JSON value
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, (int, float)):
        return NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, list):
        return ARRAY
    if isinstance(value, dict):
        return OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    """Checks whether a value is a number with a zero fractional part."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def type_matches(value: Any, type_name: str) -> bool:
    """Checks a value against a single "type" keyword name."""
    if type_name == 'integer':
        return is_integer(value)
    return kind_of(value) == type_name


def describe(value: Any) -> str:
    """Returns the most specific type name for error messages."""
    if is_integer(value):
        return 'integer'
    return kind_of(value)


def json_equal(left: Any, right: Any) -> bool:
    """Structural equality of two JSON values.

    Both values must have the same kind. Numbers compare by value, so 1 and
    1.0 are equal. Array order matters, object key order does not.
    """
    left_kind = kind_of(left)
    if left_kind != kind_of(right):
        return False
    if left_kind == ARRAY:
        return len(left) == len(right) and all(
            json_equal(a, b) for a, b in zip(left, right))
    if left_kind == OBJECT:
        if left.keys() != right.keys():
            return False
        return all(json_equal(value, right[key]) for key, value in left.items())
    return left == right


def canonical(value: Any) -> Hashable:
    """Builds a hashable key such that equal keys mean json_equal values."""
    kind = kind_of(value)
    if kind == ARRAY:
        return (ARRAY, tuple(canonical(item) for item in value))
    if kind == OBJECT:
        return (OBJECT, frozenset((key, canonical(item)) for key, item in value.items()))
    # 1 and 1.0 hash and compare equal, True is kept apart by its kind tag
    return (kind, value)


def find_duplicates(values: List[Any]) -> List[int]:
    """Returns the indexes of elements equal to an earlier element."""
    seen = set()
    duplicates = []
    for index, value in enumerate(values):
        key = canonical(value)
        if key in seen:
            duplicates.append(index)
        else:
            seen.add(key)
    return duplicates
