"""
Revision Entity - A commit that touched one or more formula files.

Keyed by commit sha. Formulas reference revisions through `revision_ids`.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from formulary.entities.base import BaseEntity


class Revision(BaseEntity):
    class Config:
        collection = "revisions"

    repository_id: str = Field(
        ...,
        description="Name of the repository the commit belongs to",
    )
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    date: Optional[datetime] = None
    subject: Optional[str] = None

    @property
    def sha(self) -> str:
        return self.id
