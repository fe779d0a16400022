"""
Flag value conversion.

Scope
- FlagType: the four declared option types ("boolean", "string", "number", "array").
- convert(value, type): turn one raw argv string into the declared type.

Conversion rules
- boolean → True only for "true" and "1"; every other string is False (no error path).
- number  → int for integral text ("42", "-7"), float otherwise ("1.5", "1e3");
            0x/0o/0b prefixes and "Infinity" are accepted, "1_000" and "nan" are not;
            raises ValueError("Invalid number value: ...") when not numeric.
- array   → value.split(","), always at least one element.
- string  → unchanged (also the fallback for unknown types).

The dispatcher wraps conversion failures into InvalidFlagValueError with the flag name.
"""
import re
from enum import StrEnum


class FlagType(StrEnum):
    """
    declared option types.

    members compare equal to their plain string values, so option schemas may use
    either FlagType.NUMBER or "number".
    """
    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"


_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_PREFIXED = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_INFINITY = re.compile(r"[+-]?Infinity")


def _number(value):
    # int() first to keep integral values exact; digit separators and "nan"/"inf" never match.
    if _PREFIXED.fullmatch(value):
        return int(value, 0)
    if _INFINITY.fullmatch(value):
        return float(value)
    if not _DECIMAL.fullmatch(value):
        raise ValueError(f"Invalid number value: {value}")
    try:
        return int(value)
    except ValueError:
        return float(value)


def convert(value, type, /):
    """
    convert a raw string flag value into its declared type.

    parameters
    - value: str, the raw token (inline "--name=value" or the following argv entry).
    - type: FlagType | str.

    raises
    - ValueError: only for "number" when the value is not numeric.
    """
    if not isinstance(value, str):
        raise TypeError("convert() argument 'value' must be a string")

    match type:
        case FlagType.BOOLEAN:
            return value in ("true", "1")
        case FlagType.NUMBER:
            return _number(value.strip())
        case FlagType.ARRAY:
            return value.split(",")
        case _:
            return value


__all__ = (
    "FlagType",
    "convert",
)
