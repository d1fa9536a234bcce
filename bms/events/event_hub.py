"""
Event Hub
---------

Routes emitted events to their subscribed handlers.
"""

from collections import defaultdict
from inspect import signature, Parameter
from typing import Callable, Dict, List, Set, Type

from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError


def _parameters(function: Callable) -> List[Parameter]:
    parameters = list(signature(function).parameters.values())
    if parameters and parameters[0].name == "self":
        parameters = parameters[1:]
    return parameters


def _is_compatible(event: Callable, handler: Callable) -> bool:
    """A handler is compatible if it accepts the same number of arguments as the event declares."""
    handler_parameters = _parameters(handler)
    if any(p.kind is Parameter.VAR_POSITIONAL for p in handler_parameters):
        return True
    return len(handler_parameters) == len(_parameters(event))


class BoundEvent:
    """
    An event accessed through a hub. Supports the natural syntax:

    >>> hub.bike_docked += handler
    >>> hub.bike_docked("BIKE001")
    >>> hub.bike_docked -= handler
    """

    def __init__(self, hub: 'EventHub', event: Callable):
        self.hub = hub
        self.event = event

    def __iadd__(self, handler: Callable):
        self.hub.subscribe(self.event, handler)
        return self

    def __isub__(self, handler: Callable):
        self.hub.unsubscribe(self.event, handler)
        return self

    def __call__(self, *args, **kwargs):
        self.hub.emit(self.event, *args, **kwargs)


class EventHub:

    def __init__(self, *event_lists: Type[EventList]):
        self._event_lists: Set[Type[EventList]] = set()
        self._listeners: Dict[Callable, List[Callable]] = defaultdict(list)
        self.add_events(*event_lists)

    def add_events(self, *event_lists: Type[EventList]):
        for event_list in event_lists:
            if not issubclass(event_list, EventList):
                raise TypeError(f"{event_list} is not an EventList.")
            self._event_lists.add(event_list)

    def subscribe(self, event: Callable, handler: Callable):
        """
        Subscribes a handler to an event.

        :raises NoSuchEventError: If the event is not on this hub.
        :raises InvalidHandlerError: If the handler does not accept the event's arguments.
        """
        event = self._resolve(event)
        if not _is_compatible(event, handler):
            raise InvalidHandlerError(f"Handler {handler} does not match the signature of {event.__name__}.")
        self._listeners[event].append(handler)

    def unsubscribe(self, event: Callable, handler: Callable):
        """
        Removes a handler from an event.

        :raises NoSuchListenerError: If the handler was not subscribed.
        """
        event = event.event if isinstance(event, BoundEvent) else event
        try:
            self._listeners[event].remove(handler)
        except ValueError:
            raise NoSuchListenerError(f"{handler} is not subscribed to {event.__name__}.")

    def emit(self, event: Callable, *args, **kwargs):
        """Calls every handler subscribed to the event with the given arguments."""
        event = self._resolve(event)
        for handler in list(self._listeners[event]):
            handler(*args, **kwargs)

    def _resolve(self, event: Callable) -> Callable:
        if isinstance(event, BoundEvent):
            event = event.event
        if event not in self:
            raise NoSuchEventError(f"Event {getattr(event, '__name__', event)} does not exist on this hub.")
        return event

    def __contains__(self, item) -> bool:
        """Checks for either an event list or a single event on the hub."""
        if isinstance(item, type):
            return item in self._event_lists
        return any(item in event_list for event_list in self._event_lists)

    def __getattr__(self, name: str) -> BoundEvent:
        if name.startswith("_"):
            raise AttributeError(name)

        for event_list in self._event_lists:
            event = event_list.events().get(name)
            if event is not None:
                return BoundEvent(self, event)

        raise NoSuchEventError(f"Event {name} does not exist on this hub.")

    def __setattr__(self, key, value):
        # augmented assignment on a bound event reassigns the attribute
        if isinstance(value, BoundEvent):
            return
        super().__setattr__(key, value)
