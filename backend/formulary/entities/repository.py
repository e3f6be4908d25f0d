"""
Repository Entity - A GitHub repository hosting formulas.

The document id is the repository name in `owner/repo` form. Exactly one
repository is the canonical formula registry (CORE) and exactly one is the
main default repository (MAIN).
"""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import Field

from formulary.config import settings
from formulary.entities.base import BaseEntity


class Repository(BaseEntity):
    """A source repository (the core registry or a tap)."""

    class Config:
        collection = "repositories"

    CORE: ClassVar[str] = settings.CORE_REPOSITORY
    MAIN: ClassVar[str] = settings.MAIN_REPOSITORY

    formula_path: Optional[str] = Field(
        None,
        description="Subdirectory holding formula files, None for the repository root",
    )
    sha: Optional[str] = Field(
        None,
        description="Last commit whose formulas were processed",
    )
    date: Optional[datetime] = None

    def __init__(self, name: Optional[str] = None, **data):
        if name is not None:
            data.setdefault("_id", name)
        super().__init__(**data)

    @property
    def name(self) -> str:
        return self.id

    def is_core(self) -> bool:
        return self.name == self.CORE

    def is_main(self) -> bool:
        return self.name == self.MAIN

    def to_param(self) -> str:
        return self.name

    @property
    def url(self) -> str:
        return f"{settings.GITHUB_URL}/{self.name}.git"
