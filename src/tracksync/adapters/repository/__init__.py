"""
Repository adapters - Implementations of RepositoryPort.
"""

from .memory import InMemoryRepository
from .sqlite import SqliteRepository


__all__ = ["InMemoryRepository", "SqliteRepository"]
