"""Repository for Formula entities."""

from __future__ import annotations

import re
from typing import List, Optional

from pymongo.database import Database

from formulary.entities.formula import Formula
from formulary.repositories.base import BaseRepository


class FormulaRepository(BaseRepository[Formula]):
    """Repository for formulas of all repositories."""

    def __init__(self, db: Database):
        super().__init__(db, "formulas", Formula)
        self.collection.create_index([("repository_id", 1)], background=True)
        self.collection.create_index([("name", 1)], background=True)
        self.collection.create_index([("revision_ids", 1)], background=True)

    def find_by_name(self, name: str) -> Optional[Formula]:
        return self.find_one({"name": name})

    def count_by_name(self, name: str) -> int:
        return self.count({"name": name})

    def find_by_letter(
        self, repository_id: str, letter: str, skip: int = 0, limit: int = 0
    ) -> tuple[List[Formula], int]:
        """Formulas of a repository whose name starts with `letter`."""
        return self.paginate(
            {
                "repository_id": repository_id,
                "name": {"$regex": f"^{re.escape(letter)}"},
            },
            sort=[("name", 1)],
            skip=skip,
            limit=limit,
        )

    def update_history(self, formula: Formula) -> Optional[Formula]:
        """Store only the history fields, leaving metadata and deps untouched."""
        return self.update_one(
            formula.id,
            {"revision_ids": list(formula.revision_ids), "date": formula.date},
        )

    def mark_removed(self, formula_id: str) -> Optional[Formula]:
        return self.update_one(formula_id, {"removed": True})
