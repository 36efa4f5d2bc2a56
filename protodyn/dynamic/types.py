"""Serializable summaries of runtime message descriptors."""

from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin
from google.protobuf.descriptor import Descriptor, FieldDescriptor

from .coercion import is_map, is_supported, kind_name

__all__ = ["FieldInfo", "MessageInfo", "describe", "describe_field", "label_name"]


def label_name(field: FieldDescriptor) -> str:
    """Return "repeated", "required" or "optional" for a field."""
    if field.is_repeated:
        return "repeated"
    if field.is_required:
        return "required"
    return "optional"


@dataclass
class FieldInfo(DataClassJsonMixin):
    """Represents one field of a message type.

    kind is the schema-level type name ("int32", "string", "message", "map", ...).
    settable tells whether MessageHandle.set_field accepts values for it.
    """

    name: str
    number: int
    kind: str
    label: str
    settable: bool


@dataclass
class MessageInfo(DataClassJsonMixin):
    """Represents a message type and its fields."""

    name: str
    full_name: str
    file: str
    fields: list[FieldInfo]


def describe_field(field: FieldDescriptor) -> FieldInfo:
    """Summarize a field descriptor."""
    return FieldInfo(
        name=field.name,
        number=field.number,
        kind="map" if is_map(field) else kind_name(field),
        label=label_name(field),
        settable=is_supported(field),
    )


def describe(descriptor: Descriptor) -> MessageInfo:
    """Summarize a message descriptor."""
    return MessageInfo(
        name=descriptor.name,
        full_name=descriptor.full_name,
        file=descriptor.file.name,
        fields=[describe_field(field) for field in descriptor.fields],
    )
