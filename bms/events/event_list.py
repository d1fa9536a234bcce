"""
Event Lists
-----------

An event is a static function on a subclass of :class:`EventList`. Its
signature is the contract that every handler of the event must accept.
"""

from inspect import isfunction
from typing import Callable, Dict


class EventListMeta(type):

    def __contains__(cls, event: Callable) -> bool:
        """Checks that this exact event is declared on the list."""
        return cls.events().get(getattr(event, "__name__", None)) is event


class EventList(metaclass=EventListMeta):
    """
    A group of related events, such as those a
    :class:`~bms.fleet.manager.BMSManager` emits.
    """

    @classmethod
    def events(cls) -> Dict[str, Callable]:
        """The declared events by name, including those of parent lists."""
        return {
            name: getattr(cls, name)
            for klass in reversed(cls.__mro__) if klass not in (object, EventList)
            for name, value in vars(klass).items()
            if isinstance(value, staticmethod) or (isfunction(value) and not name.startswith("_"))
        }
