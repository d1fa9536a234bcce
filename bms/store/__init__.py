"""
Handles all the persistence for the application.
Currently has two implementations: in-memory and
database (tortoise) backed.
"""

from .database import DatabaseStore
from .memory import MemoryStore
from .store import Store

__all__ = ["Store", "MemoryStore", "DatabaseStore"]
