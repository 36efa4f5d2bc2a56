"""Value coercion for dynamic message fields.

Each supported field kind maps to a Coercion describing what it accepts and
how an accepted value is converted before it is stored. Kinds missing from
COERCIONS cannot be set; support for a new kind is added by registering an
entry, not by branching at the call site.
"""

import math
import numbers
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any

from google.protobuf.descriptor import FieldDescriptor

from ..errors import TypeMismatchError, UnsupportedKindError

KIND_NAMES = {
    FieldDescriptor.TYPE_DOUBLE: "double",
    FieldDescriptor.TYPE_FLOAT: "float",
    FieldDescriptor.TYPE_INT64: "int64",
    FieldDescriptor.TYPE_UINT64: "uint64",
    FieldDescriptor.TYPE_INT32: "int32",
    FieldDescriptor.TYPE_FIXED64: "fixed64",
    FieldDescriptor.TYPE_FIXED32: "fixed32",
    FieldDescriptor.TYPE_BOOL: "bool",
    FieldDescriptor.TYPE_STRING: "string",
    FieldDescriptor.TYPE_GROUP: "group",
    FieldDescriptor.TYPE_MESSAGE: "message",
    FieldDescriptor.TYPE_BYTES: "bytes",
    FieldDescriptor.TYPE_UINT32: "uint32",
    FieldDescriptor.TYPE_ENUM: "enum",
    FieldDescriptor.TYPE_SFIXED32: "sfixed32",
    FieldDescriptor.TYPE_SFIXED64: "sfixed64",
    FieldDescriptor.TYPE_SINT32: "sint32",
    FieldDescriptor.TYPE_SINT64: "sint64",
}


def is_map(field: FieldDescriptor) -> bool:
    """Check if a field is a map field."""
    message_type = field.message_type
    return message_type is not None and message_type.GetOptions().map_entry


def is_repeated(field: FieldDescriptor) -> bool:
    """Check if a field is repeated (maps included)."""
    return field.is_repeated


def kind_name(field: FieldDescriptor) -> str:
    """Return the schema-level name of a field's kind."""
    return KIND_NAMES.get(field.type, f"kind {field.type}")


def _wrap_signed(value: int, bits: int) -> int:
    # Two's complement wrap-around, as a fixed-width integer cast would do.
    value &= (1 << bits) - 1
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def _to_signed(value: Any, bits: int) -> int:
    if isinstance(value, bool):
        raise TypeError
    if isinstance(value, numbers.Integral):
        return _wrap_signed(int(value), bits)
    if isinstance(value, numbers.Real):
        if not math.isfinite(value):
            raise ValueError(f"cannot truncate {value!r} to an integer")
        return _wrap_signed(math.trunc(value), bits)
    raise TypeError


def _to_text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError
    return value


@dataclass(frozen=True)
class Coercion:
    """How values for one field kind are accepted and converted."""

    expects: str
    convert: Callable[[Any], Any]


COERCIONS: dict[int, Coercion] = {
    FieldDescriptor.TYPE_INT64: Coercion("an int64-compatible value", partial(_to_signed, bits=64)),
    FieldDescriptor.TYPE_INT32: Coercion("an int32-compatible value", partial(_to_signed, bits=32)),
    FieldDescriptor.TYPE_STRING: Coercion("a string value", _to_text),
}


def is_supported(field: FieldDescriptor) -> bool:
    """Check if values can be set on a field."""
    return not is_repeated(field) and field.type in COERCIONS


def coerce(field: FieldDescriptor, value: Any) -> Any:
    """Convert a value for storage in a field.

    Args:
        field: Descriptor of the destination field.
        value: The caller supplied value.

    Returns:
        The value in the representation the field stores.

    Raises:
        UnsupportedKindError: The field's kind has no coercion.
        TypeMismatchError: The value is not accepted by the field's kind.
    """
    if is_map(field):
        raise UnsupportedKindError(f"unsupported field kind for '{field.name}': map")
    if is_repeated(field):
        raise UnsupportedKindError(
            f"unsupported field kind for '{field.name}': repeated {kind_name(field)}"
        )

    coercion = COERCIONS.get(field.type)
    if coercion is None:
        raise UnsupportedKindError(f"unsupported field kind for '{field.name}': {kind_name(field)}")

    try:
        return coercion.convert(value)
    except TypeError:
        raise TypeMismatchError(
            f"field '{field.name}' expects {coercion.expects}, got {type(value).__name__}"
        ) from None
    except ValueError as err:
        raise TypeMismatchError(f"field '{field.name}': {err}") from None
