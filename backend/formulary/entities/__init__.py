"""Database entity models - represents the actual structure stored in MongoDB"""

from .base import BaseEntity
from .dependency import Dependency, DependencyType
from .formula import Formula
from .repository import Repository
from .revision import Revision

__all__ = [
    "BaseEntity",
    "Dependency",
    "DependencyType",
    "Formula",
    "Repository",
    "Revision",
]
