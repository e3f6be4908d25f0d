"""
Formula refresh orchestration.

Loads formulas bound to their repositories, applies metadata updates and
history regeneration under a per-formula lock, and persists the result.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ContextManager, Dict, Optional

from pymongo.database import Database

from formulary.entities.formula import Formula, FormulaHistory
from formulary.entities.repository import Repository
from formulary.repositories.formula import FormulaRepository
from formulary.repositories.repository import RepositoryRepository
from formulary.services.dependency_resolver import DependencyResolver
from formulary.services.exceptions import FormulaNotFound, RepositoryNotFound
from formulary.services.raw_formula_client import RawFormulaClient
from formulary.utils.locking import formula_lock

logger = logging.getLogger(__name__)


class FormulaService:
    def __init__(
        self,
        db: Database,
        history: Optional[FormulaHistory] = None,
        core_repository: str = Repository.CORE,
        lock: Callable[[str], ContextManager[Any]] = formula_lock,
        raw_client: Callable[[], RawFormulaClient] = RawFormulaClient,
    ):
        self.db = db
        self.formula_repo = FormulaRepository(db)
        self.repository_repo = RepositoryRepository(db)
        self.resolver = DependencyResolver(
            self.formula_repo,
            repositories=self.repository_repo,
            core_repository=core_repository,
        )
        self._history = history
        self._lock = lock
        self._raw_client = raw_client

    @property
    def history(self) -> FormulaHistory:
        if self._history is None:
            from formulary.services.formula_history import FormulaHistoryService

            self._history = FormulaHistoryService(self.db)
        return self._history

    def get_repository(self, repository_name: str) -> Repository:
        repository = self.repository_repo.find_by_name(repository_name)
        if repository is None:
            raise RepositoryNotFound(
                f"Repository {repository_name} not found", name=repository_name
            )
        return repository

    def get_formula(self, formula_id: str) -> Formula:
        """Load a stored formula bound to its repository."""
        formula = self.formula_repo.find_by_id(formula_id)
        if formula is None:
            raise FormulaNotFound(f"Formula {formula_id} not found", name=formula_id)
        return formula.bind(self.get_repository(formula.repository_id))

    def find_or_build(self, repository_name: str, name: str) -> Formula:
        repository = self.get_repository(repository_name)
        formula = self.formula_repo.find_by_id(f"{repository.name}/{name}")
        if formula is None:
            logger.info(f"Adding new formula {name} to {repository.name}")
            return Formula(name=name, repository=repository)
        return formula.bind(repository)

    def refresh(
        self, repository_name: str, name: str, formula_info: Dict[str, Any]
    ) -> Formula:
        """Apply freshly parsed metadata to a formula and store it."""
        with self._lock(f"{repository_name}/{name}"):
            formula = self.find_or_build(repository_name, name)
            formula.update_metadata(formula_info, self.resolver)
            formula.removed = False
            self.formula_repo.save(formula)

        logger.info(
            f"Updated metadata of {formula.id} ({formula.version()})",
            extra={"formula_id": formula.id},
        )
        return formula

    def regenerate_history(self, formula_id: str) -> Formula:
        with self._lock(formula_id):
            formula = self.get_formula(formula_id)
            try:
                formula.generate_history(self.history)
            finally:
                # Stored on failure too, leaving the history cleared
                self.formula_repo.update_history(formula)
        return formula

    def fetch_source(self, formula_id: str) -> str:
        """Download the current recipe file of a stored formula."""
        formula = self.get_formula(formula_id)
        with self._raw_client() as client:
            return client.fetch(formula)

    def mark_removed(self, formula_id: str) -> Formula:
        formula = self.formula_repo.mark_removed(formula_id)
        if formula is None:
            raise FormulaNotFound(f"Formula {formula_id} not found", name=formula_id)
        logger.info(f"Marked {formula_id} as removed", extra={"formula_id": formula_id})
        return formula
