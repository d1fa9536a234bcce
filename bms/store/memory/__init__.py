from .store import MemoryStore
