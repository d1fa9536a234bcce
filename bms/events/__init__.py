"""
.. autoclasstree:: bms.events

This module provides a simple event system. It is centered around the use of hubs.
A hub is created by passing a number of event lists in. These event lists provide
typed callback signatures which subscribers can use to implement their handlers.

>>> class DockEvents(EventList):
>>>     @staticmethod
>>>     def bike_docked(bike_id: str):
>>>         "A bike has been docked."
>>>
>>> def dock_handler(bike_id):
>>>     print(f"Docked: {bike_id}")
>>>
>>> hub = EventHub(DockEvents)
>>> hub.subscribe(DockEvents.bike_docked, dock_handler)
>>> hub.emit(DockEvents.bike_docked, "BIKE001")
Docked: BIKE001

Handlers run synchronously, in the order they subscribed. An exception
raised by a handler propagates to whoever emitted the event, so handlers
that must never disturb the emitter are responsible for their own errors.
"""

from .event_hub import EventHub
from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError
