from .store import DatabaseStore
