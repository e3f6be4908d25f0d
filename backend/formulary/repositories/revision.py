"""Repository for Revision entities."""

from __future__ import annotations

from typing import List, Optional

from pymongo import UpdateOne
from pymongo.client_session import ClientSession
from pymongo.database import Database

from formulary.entities.revision import Revision
from formulary.repositories.base import BaseRepository


class RevisionRepository(BaseRepository[Revision]):
    def __init__(self, db: Database):
        super().__init__(db, "revisions", Revision)
        self.collection.create_index(
            [("repository_id", 1), ("date", -1)], background=True
        )

    def bulk_upsert(
        self, revisions: List[Revision], session: Optional[ClientSession] = None
    ) -> int:
        """Insert revisions that are not stored yet. Existing shas are kept."""
        if not revisions:
            return 0
        operations = []
        for revision in revisions:
            doc = revision.to_mongo()
            doc.pop("_id", None)
            operations.append(
                UpdateOne({"_id": revision.id}, {"$setOnInsert": doc}, upsert=True)
            )
        result = self.collection.bulk_write(operations, ordered=False, session=session)
        return result.upserted_count
