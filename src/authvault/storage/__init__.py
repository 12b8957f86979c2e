"""Storage interface for authvault.

This package defines the abstract storage contract that concrete
backends implement. The implementations live in
``authvault.persistence`` (SQLAlchemy, in-memory).
"""

from authvault.storage.auth_storage import AuthStorage, Clock

__all__ = ["AuthStorage", "Clock"]
