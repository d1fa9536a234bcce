from enum import Enum
from typing import Type, Optional

from tortoise.exceptions import ConfigurationError
from tortoise.fields import CharField


class EnumField(CharField):
    """
    Stores a member of a string enum, such as a
    :class:`~bms.fleet.states.BikeStatus`, by its value.
    The column is as wide as the longest value.
    """

    def __init__(self, enum_type: Type[Enum], **kwargs):
        if not isinstance(enum_type, type) or not issubclass(enum_type, Enum):
            raise ConfigurationError(f"{enum_type} is not a subclass of Enum!")
        super().__init__(max(len(member.value) for member in enum_type), **kwargs)
        self.enum_type = enum_type

    def to_db_value(self, value, instance) -> Optional[str]:
        return None if value is None else self.enum_type(value).value

    def to_python_value(self, value) -> Optional[Enum]:
        if value is None or isinstance(value, self.enum_type):
            return value
        try:
            return self.enum_type(value)
        except ValueError:
            raise ValueError(f"Stored value {value!r} is not a {self.enum_type.__name__}.")
