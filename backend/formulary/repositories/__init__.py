"""Repository layer for database operations"""

from .base import BaseRepository
from .formula import FormulaRepository
from .repository import RepositoryRepository
from .revision import RevisionRepository

__all__ = [
    "BaseRepository",
    "FormulaRepository",
    "RepositoryRepository",
    "RevisionRepository",
]
