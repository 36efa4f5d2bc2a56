"""Dynamic message handles built from runtime descriptors."""

from typing import Any, Self

from google.protobuf import json_format, message_factory
from google.protobuf import message as _message
from google.protobuf.descriptor import Descriptor, FieldDescriptor
from google.protobuf.message import Message

from ..errors import DecodeError, EncodeError, FieldNotFoundError
from .coercion import coerce
from .types import MessageInfo, describe


def new_message(descriptor: Descriptor) -> Message:
    """Create a zero-valued message instance for a descriptor."""
    return message_factory.GetMessageClass(descriptor)()


class MessageHandle:
    """A message type paired with one mutable instance of it.

    The descriptor is fixed when the handle is created. Fields are read and
    written by name, the way a scripted caller addresses them.

    Example:
        handle = registry.load("person.proto", "Person")
        handle.set_field("age", 30)
        handle.set_field("name", "Ada")
        data = handle.encode()

        other = handle.new()
        other.decode(data)
        other.get_field("name")  # "Ada"
    """

    def __init__(self, descriptor: Descriptor) -> None:
        self._descriptor = descriptor
        self._message: Message | None = new_message(descriptor)

    @property
    def descriptor(self) -> Descriptor:
        """The descriptor of the handled message type."""
        return self._descriptor

    @property
    def message(self) -> Message | None:
        """The underlying message instance."""
        return self._message

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def full_name(self) -> str:
        return self._descriptor.full_name

    def __repr__(self) -> str:
        return f"<MessageHandle {self.full_name}>"

    def new(self) -> Self:
        """Return a fresh zero-valued handle of the same type."""
        return type(self)(self._descriptor)

    def describe(self) -> MessageInfo:
        """Return a summary of the handled message type."""
        return describe(self._descriptor)

    def encode(self) -> bytes:
        """Serialize the instance to the protobuf wire format."""
        if self._message is None:
            raise EncodeError(f"no dynamic message to encode for {self.full_name}")

        try:
            return self._message.SerializeToString()
        except _message.EncodeError as err:
            raise EncodeError(f"failed to encode {self.full_name}: {err}") from err

    def decode(self, data: bytes) -> None:
        """Replace the instance contents with a parsed wire-format message."""
        if self._message is None:
            raise DecodeError(f"no dynamic message to decode into for {self.full_name}")

        try:
            payload = memoryview(data).tobytes()
        except TypeError:
            raise DecodeError(
                f"cannot decode {self.full_name} from {type(data).__name__}, expected bytes"
            ) from None

        try:
            self._message.ParseFromString(payload)
        except _message.DecodeError as err:
            raise DecodeError(f"failed to decode {self.full_name}: {err}") from err

    def set_field(self, field: str, value: Any) -> None:
        """Coerce a value to a field's kind and store it.

        Args:
            field: Name of the field.
            value: An int, float or str, depending on the field's kind.

        Raises:
            FieldNotFoundError: The type has no such field.
            TypeMismatchError: The value does not fit the field's kind, or
                the kind cannot be set.
        """
        field_desc = self._descriptor.fields_by_name.get(field)
        if field_desc is None:
            raise FieldNotFoundError(f"field '{field}' not found in message {self.full_name}")

        setattr(self._message, field_desc.name, coerce(field_desc, value))

    def get_field(self, field: str) -> Any:
        """Return a field's current value, or its zero value if unset."""
        field_desc = self._instance_field(field)
        return getattr(self._message, field_desc.name)

    def to_dict(self) -> dict[str, Any]:
        """Render the instance as a JSON-compatible dict."""
        if self._message is None:
            return {}
        return json_format.MessageToDict(self._message, preserving_proto_field_name=True)

    def _instance_field(self, field: str) -> FieldDescriptor:
        # Looked up through the instance, not the stored descriptor.
        field_desc = None
        if self._message is not None:
            field_desc = self._message.DESCRIPTOR.fields_by_name.get(field)
        if field_desc is None:
            raise FieldNotFoundError(f"field '{field}' not found in message {self.full_name}")
        return field_desc
