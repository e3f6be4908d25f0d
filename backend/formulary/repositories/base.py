"""Base repository with common MongoDB operations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pymongo.client_session import ClientSession
from pymongo.database import Database

from formulary.entities.base import BaseEntity


T = TypeVar("T", bound=BaseEntity)


class BaseRepository(Generic[T]):
    """
    Generic collection access for one entity type.

    Documents are keyed by string ids, so no ObjectId conversion happens
    here.
    """

    def __init__(self, db: Database, collection_name: str, model_class: Type[T]):
        self.db = db
        self.collection = db[collection_name]
        self.model_class = model_class

    def _to_model(self, doc: Optional[Dict[str, Any]]) -> Optional[T]:
        if doc is None:
            return None
        return self.model_class.model_validate(doc)

    def find_by_id(self, entity_id: str) -> Optional[T]:
        return self.find_one({"_id": entity_id})

    def find_one(self, query: Dict[str, Any]) -> Optional[T]:
        return self._to_model(self.collection.find_one(query))

    def find_many(
        self,
        query: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[T]:
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [self._to_model(doc) for doc in cursor]

    def paginate(
        self,
        query: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> Tuple[List[T], int]:
        total = self.collection.count_documents(query)
        return self.find_many(query, sort=sort, skip=skip, limit=limit), total

    def count(self, query: Dict[str, Any]) -> int:
        return self.collection.count_documents(query)

    def save(self, entity: T, session: Optional[ClientSession] = None) -> T:
        """Insert or replace an entity by its id, stamping `updated_at`."""
        entity.updated_at = datetime.now(timezone.utc)
        doc = entity.to_mongo()
        self.collection.replace_one(
            {"_id": entity.id}, doc, upsert=True, session=session
        )
        return entity

    def update_one(
        self, entity_id: str, updates: Dict[str, Any]
    ) -> Optional[T]:
        payload = {**updates, "updated_at": datetime.now(timezone.utc)}
        result = self.collection.update_one({"_id": entity_id}, {"$set": payload})
        if result.matched_count == 0:
            return None
        return self.find_by_id(entity_id)
