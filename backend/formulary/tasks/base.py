"""Base task with lazily created database and service handles."""

from __future__ import annotations

import logging

from celery import Task
from pymongo.database import Database

from formulary.core.logging import setup_logging
from formulary.database.mongo import get_database
from formulary.services.formula_service import FormulaService

logger = logging.getLogger(__name__)


class FormulaTask(Task):
    abstract = True

    _db: Database | None = None
    _service: FormulaService | None = None

    @property
    def db(self) -> Database:
        if self._db is None:
            setup_logging()
            self._db = get_database()
        return self._db

    @property
    def service(self) -> FormulaService:
        if self._service is None:
            self._service = FormulaService(self.db)
        return self._service

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            f"Task {self.name} failed: {exc}",
            extra={"task_id": task_id},
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)
