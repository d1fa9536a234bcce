class NoSuchEventError(AttributeError):
    """Raised when an event is not on any of the event lists of a hub."""


class NoSuchListenerError(ValueError):
    """Raised when unsubscribing a handler that was never subscribed."""


class InvalidHandlerError(TypeError):
    """Raised when a handler's signature does not match the event it subscribes to."""
