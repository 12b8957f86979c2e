"""Persistence implementations for authvault.

This package contains concrete backends for the storage contract defined
in authvault.storage.

Structure:
    persistence/
    ├── sqlalchemy/     # SQL databases through SQLAlchemy (integer ids)
    ├── memory/         # In-process dictionaries (UUID ids)
    └── factory.py      # Backend selection from settings

Usage:
    from authvault.persistence.sqlalchemy import SQLAlchemyStorage
    from authvault.persistence.memory import InMemoryStorage
"""
