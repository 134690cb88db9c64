"""Field checks used when turning collaborator rows into records."""

from typing import Any, Dict, Tuple, Type, Union

from core.errors import UnexpectedShape

TypeSpec = Union[Type, Tuple[Type, ...]]


def require(row: Dict[str, Any], field: str, types: TypeSpec, record: str) -> Any:
    """Return ``row[field]`` or raise UnexpectedShape.

    Args:
        row: Raw row from a collaborator
        field: Field name
        types: Accepted type(s) for the value
        record: Record name used in the error message

    Returns:
        The field value
    """
    if not isinstance(row, dict):
        raise UnexpectedShape(f"{record}: expected an object, got {type(row).__name__}")
    if field not in row or row[field] is None:
        raise UnexpectedShape(f"{record}: missing field '{field}'")
    value = row[field]
    # bool is an int subclass; never accept it as an id or counter
    if isinstance(value, bool) and bool not in _as_tuple(types):
        raise UnexpectedShape(f"{record}: field '{field}' has type bool")
    if not isinstance(value, types):
        raise UnexpectedShape(
            f"{record}: field '{field}' has type {type(value).__name__}"
        )
    return value


def optional_text(row: Dict[str, Any], field: str, record: str) -> str:
    """Return a text field, treating a missing value as empty."""
    value = row.get(field)
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise UnexpectedShape(f"{record}: field '{field}' is not text")
    return str(value)


def _as_tuple(types: TypeSpec) -> Tuple[Type, ...]:
    return types if isinstance(types, tuple) else (types,)


ID_TYPES = (int, str)
