"""Exceptions raised by protodyn."""

__all__ = [
    "ProtodynError",
    "CompileError",
    "NotFoundError",
    "FieldNotFoundError",
    "DuplicateNameError",
    "TypeMismatchError",
    "UnsupportedKindError",
    "EncodeError",
    "DecodeError",
]


class ProtodynError(RuntimeError):
    """Base exception for protodyn errors."""


class CompileError(ProtodynError):
    """Raised when a schema source cannot be compiled."""


class NotFoundError(ProtodynError):
    """Raised when a message type is not known."""


class FieldNotFoundError(NotFoundError):
    """Raised when a message type has no field with the requested name."""


class DuplicateNameError(ProtodynError):
    """Raised when a bulk load meets a message name that is already registered."""


class TypeMismatchError(ProtodynError):
    """Raised when a value cannot be stored in a field of the given kind."""


class UnsupportedKindError(TypeMismatchError):
    """Raised when a field's kind has no coercion."""


class EncodeError(ProtodynError):
    """Raised when message encoding fails."""


class DecodeError(ProtodynError):
    """Raised when message decoding fails."""
