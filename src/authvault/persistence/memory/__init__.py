"""In-memory implementation for authvault persistence."""

from authvault.persistence.memory.storage import InMemoryStorage

__all__ = ["InMemoryStorage"]
