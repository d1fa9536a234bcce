"""
Fields
-------

Fields for the native types of the fleet that marshmallow
does not handle on its own.
"""

from enum import Enum
from typing import Type, Optional

from marshmallow import fields, ValidationError


class EnumField(fields.Field):
    """
    Serializes a member of an :class:`~enum.Enum` to its value, and
    loads a value back into the member. The statuses, bike types and
    operation tags of the fleet all travel as their values.
    """

    def __init__(self, enum_type: Type[Enum], *args, **kwargs):
        if not isinstance(enum_type, type) or not issubclass(enum_type, Enum):
            raise ValidationError(f"Expected enum type, got {enum_type!r} instead")
        self.enum_type = enum_type
        self.choices = [member.value for member in enum_type]
        super().__init__(*args, **kwargs)

    def _serialize(self, value, attr, obj, **kwargs):
        if isinstance(value, self.enum_type):
            return value.value
        if value in self.choices:
            return value
        return None

    def _deserialize(self, value, attr, data, **kwargs) -> Optional[Enum]:
        try:
            return self.enum_type(value)
        except ValueError:
            raise ValidationError(f"Must be one of: {', '.join(map(str, self.choices))}.")


def Many(schema):
    """A list of nested objects, as the listing routes return them."""
    return fields.List(fields.Nested(schema))
