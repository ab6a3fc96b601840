"""
Value guards for generated `_set` and `_add` functions.
Maps a field type and occurrence to a predicate over the value being written.
"""
from typing import Optional

from model import FieldType, INTEGER_TYPES, Occurrence, ScalarType, TypeKind, UNSIGNED_TYPES
from generators.generator_utils import record_class_name


class Guard:
    """
    A predicate description. `template` is a Python boolean expression in which
    `{value}` stands for the checked variable and `{record}` for the record class of a
    message-typed field.
    """
    __slots__ = ("description", "template", "message_type")

    def __init__(self, description: str, template: str, message_type: Optional[str] = None):
        self.description = description
        self.template = template
        self.message_type = message_type

    def render(self, var: str = "value") -> str:
        record = record_class_name(self.message_type) if self.message_type else ""
        return self.template.format(value=var, record=record)

    def __eq__(self, other):
        if not isinstance(other, Guard):
            return NotImplemented
        return (self.description, self.template, self.message_type) == (other.description, other.template, other.message_type)

    def __hash__(self):
        return hash((self.description, self.template, self.message_type))

    def __repr__(self):
        return f"Guard({self.description!r})"


SEQUENCE_GUARD = Guard("finite ordered sequence", "isinstance({value}, (list, tuple))")
INTEGER_GUARD = Guard("integer", "isinstance({value}, int) and not isinstance({value}, bool)")
UNSIGNED_GUARD = Guard("non-negative integer", "isinstance({value}, int) and not isinstance({value}, bool) and {value} >= 0")
BOOL_GUARD = Guard("boolean", "isinstance({value}, bool)")
FLOAT_GUARD = Guard("floating-point number", "isinstance({value}, float)")
STRING_GUARD = Guard("character sequence", "isinstance({value}, str)")
BYTES_GUARD = Guard("byte sequence", "isinstance({value}, bytes)")
# Membership in the enum's declared values is not checked
ENUM_GUARD = Guard("symbolic identifier", "isinstance({value}, str) and {value}.isidentifier()")


def guard_for(field_type: FieldType, occurrence: Occurrence) -> Guard:
    if occurrence is Occurrence.REPEATED:
        return SEQUENCE_GUARD
    if field_type.kind is TypeKind.ENUM:
        return ENUM_GUARD
    if field_type.kind is TypeKind.MESSAGE:
        return Guard(f"instance of {field_type.name}", "isinstance({value}, {record})", message_type=field_type.name)
    scalar = field_type.scalar_type
    if scalar in UNSIGNED_TYPES:
        return UNSIGNED_GUARD
    if scalar in INTEGER_TYPES:
        return INTEGER_GUARD
    if scalar is ScalarType.BOOL:
        return BOOL_GUARD
    if scalar in (ScalarType.FLOAT, ScalarType.DOUBLE):
        return FLOAT_GUARD
    if scalar is ScalarType.STRING:
        return STRING_GUARD
    if scalar is ScalarType.BYTES:
        return BYTES_GUARD
    raise ValueError(f"No guard for field type {field_type!r}")
