"""Parameter value coercion.

Converts the raw string values received over HTTP into values of the type
a command or scheme parameter declares. A parameter type is either a
Python type/annotation or one of the tag names in ``TYPE_TAGS``; tag names
are matched case-insensitively and may carry a namespace prefix
(``System.Int32`` resolves like ``int32``).

Deserialization rules:

- string types take the raw text as-is
- scalar types (numbers, booleans, decimals, dates, times, UUIDs, enums)
  accept a JSON literal or their bare text form
- everything else (dicts, lists, pydantic models) must be JSON text

String parameters never fail: if a constrained string type rejects the
value, the raw text is used verbatim. Any other type must parse or
``ParameterCoercionError`` is raised.
"""

import copy
import datetime
import decimal
import enum
import json
import uuid
from functools import lru_cache
from typing import Annotated, Any, Dict, Union, get_args, get_origin

from pydantic import TypeAdapter

from workflow_core.errors import ParameterCoercionError, UnknownParameterTypeError


TYPE_TAGS: Dict[str, Any] = {
    "string": str,
    "str": str,
    "char": str,
    "int": int,
    "integer": int,
    "int16": int,
    "int32": int,
    "int64": int,
    "long": int,
    "short": int,
    "byte": int,
    "float": float,
    "single": float,
    "double": float,
    "decimal": decimal.Decimal,
    "bool": bool,
    "boolean": bool,
    "date": datetime.date,
    "datetime": datetime.datetime,
    "time": datetime.time,
    "timespan": datetime.timedelta,
    "guid": uuid.UUID,
    "uuid": uuid.UUID,
    "object": Dict[str, Any],
    "dict": Dict[str, Any],
    "dictionary": Dict[str, Any],
    "list": list,
    "array": list,
}

_TYPE_NAMES = {
    str: "string",
    int: "int",
    float: "float",
    decimal.Decimal: "decimal",
    bool: "bool",
    datetime.date: "date",
    datetime.datetime: "datetime",
    datetime.time: "time",
    datetime.timedelta: "timespan",
    uuid.UUID: "guid",
    list: "list",
}

SCALAR_TYPES = (
    bool,
    int,
    float,
    decimal.Decimal,
    datetime.date,
    datetime.datetime,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    enum.Enum,
)

ZERO_VALUES: Dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    decimal.Decimal: decimal.Decimal(0),
}


def resolve_type(type_tag: Any) -> Any:
    """Resolve a parameter type tag to a Python type or annotation.

    Args:
        type_tag: A Python type/annotation, a tag name, or None (string)

    Returns:
        The type to validate values against

    Raises:
        UnknownParameterTypeError: If a tag name is not known
    """
    if type_tag is None:
        return str
    if isinstance(type_tag, str):
        name = type_tag.strip().lower().rsplit(".", 1)[-1]
        if name not in TYPE_TAGS:
            raise UnknownParameterTypeError(f"Unknown parameter type '{type_tag}'")
        return TYPE_TAGS[name]
    return type_tag


def type_name(type_tag: Any) -> str:
    """Get the display name of a parameter type, used when serializing descriptors."""
    if isinstance(type_tag, str):
        return type_tag
    target = resolve_type(type_tag)
    if isinstance(target, type):
        return _TYPE_NAMES.get(target, target.__name__)
    return str(target)


def _unwrap(target: Any) -> Any:
    """Strip Optional[...] and Annotated[...] wrappers."""
    origin = get_origin(target)
    if origin is Annotated:
        return _unwrap(get_args(target)[0])
    if origin is Union:
        args = [arg for arg in get_args(target) if arg is not type(None)]
        if len(args) == 1:
            return _unwrap(args[0])
    return target


def is_string_type(type_tag: Any) -> bool:
    base = _unwrap(resolve_type(type_tag))
    return (
        isinstance(base, type)
        and issubclass(base, str)
        and not issubclass(base, enum.Enum)
    )


def _is_scalar(target: Any) -> bool:
    base = _unwrap(target)
    return isinstance(base, type) and issubclass(base, SCALAR_TYPES)


def _is_decimal(target: Any) -> bool:
    base = _unwrap(target)
    return isinstance(base, type) and issubclass(base, decimal.Decimal)


@lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _adapter(target: Any) -> TypeAdapter:
    try:
        return _cached_adapter(target)
    except TypeError:
        # Annotated metadata that cannot be hashed
        return TypeAdapter(target)


def deserialize(raw_value: str, type_tag: Any) -> Any:
    """Deserialize raw text into a value of the given type.

    Raises:
        pydantic.ValidationError: If the text does not represent a valid value
        UnknownParameterTypeError: If the type tag cannot be resolved
    """
    target = resolve_type(type_tag)
    adapter = _adapter(target)
    if is_string_type(target):
        return adapter.validate_python(raw_value)
    if _is_decimal(target):
        # JSON floats would lose precision
        try:
            return adapter.validate_python(json.loads(raw_value, parse_float=decimal.Decimal))
        except ValueError:
            return adapter.validate_python(raw_value)
    if _is_scalar(target):
        try:
            return adapter.validate_json(raw_value)
        except ValueError:
            return adapter.validate_python(raw_value)
    return adapter.validate_json(raw_value)


def coerce(raw_value: str, type_tag: Any) -> Any:
    """Convert a raw parameter value to the declared parameter type.

    Args:
        raw_value: Value as received in the request
        type_tag: Declared type of the parameter

    Returns:
        The typed value. For string types the raw value is returned
        verbatim when the type rejects it.

    Raises:
        ParameterCoercionError: If a non-string value cannot be parsed
    """
    target = resolve_type(type_tag)
    try:
        return deserialize(raw_value, target)
    except ValueError as e:
        if is_string_type(target):
            return raw_value
        raise ParameterCoercionError(
            f"Value '{raw_value}' cannot be converted to type {type_name(target)}"
        ) from e


def serialize(value: Any, type_tag: Any = None) -> str:
    """Render a typed value as the text form ``coerce`` reads back."""
    if isinstance(value, str):
        return value
    target = resolve_type(type_tag) if type_tag is not None else type(value)
    dumped = _adapter(target).dump_python(value, mode="json")
    if isinstance(dumped, str):
        return dumped
    return json.dumps(dumped)


def default_value(type_tag: Any, declared_default: Any = None) -> Any:
    """Get the value a parameter is reset to before form values are applied.

    A declared default wins; otherwise numeric and boolean types reset to
    their zero value and every other type resets to None.
    """
    if declared_default is not None:
        return copy.deepcopy(declared_default)
    target = resolve_type(type_tag)
    if isinstance(target, type):
        return ZERO_VALUES.get(target)
    return None
