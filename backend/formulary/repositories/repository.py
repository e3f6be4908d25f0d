"""Repository repository for database operations (yes, repo of repos!)"""

from typing import Optional

from pymongo.database import Database

from formulary.entities.repository import Repository
from formulary.repositories.base import BaseRepository


class RepositoryRepository(BaseRepository[Repository]):
    """Repository for the core registry and tap repositories."""

    def __init__(self, db: Database):
        super().__init__(db, "repositories", Repository)

    def find_by_name(self, name: str) -> Optional[Repository]:
        return self.find_by_id(name)

    def find_core(self) -> Optional[Repository]:
        return self.find_by_id(Repository.CORE)

    def find_main(self) -> Optional[Repository]:
        return self.find_by_id(Repository.MAIN)
