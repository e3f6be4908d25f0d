"""
Dependency name resolution.

Turns a dependency name as written in a recipe into the id of a stored
formula:

- "git"              -> "{core repository}/git"
- "homebrew/php"     -> "Homebrew/homebrew-php"
- "homebrew/php/php56" -> "Homebrew/homebrew-php/php56"

Lookup is by derived id first and then by bare name. The second lookup
covers formulas stored before ids followed the `{repository}/{name}`
convention and can go once all stored ids are migrated.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from formulary.entities.dependency import Dependency, FormulaLookup
from formulary.entities.formula import Formula
from formulary.entities.repository import Repository
from formulary.services.exceptions import FormulaNotFound, RepositoryNotFound

logger = logging.getLogger(__name__)

TAP_PREFIX = "homebrew-"


class RepositoryLookup(Protocol):
    def find_by_id(self, repository_id: str) -> Optional[Repository]: ...


def formula_id_for(name: str, core_repository: str = Repository.CORE) -> str:
    """Derive the expected formula id for a dependency name."""
    if "/" in name:
        return name.capitalize().replace("/", f"/{TAP_PREFIX}", 1)
    return f"{core_repository}/{name.lower()}"


class DependencyResolver:
    """Resolves dependency names against the formula store."""

    def __init__(
        self,
        formulas: FormulaLookup,
        repositories: Optional[RepositoryLookup] = None,
        core_repository: str = Repository.CORE,
    ):
        self.formulas = formulas
        self.repositories = repositories
        self.core_repository = core_repository

    def resolve_formula(self, name: str) -> Formula:
        formula_id = formula_id_for(name, self.core_repository)

        formula = self.formulas.find_by_id(formula_id)
        if formula is None:
            formula = self.formulas.find_by_name(name)
            if formula is not None:
                logger.debug(f"Resolved {name} by name to {formula.id}, expected {formula_id}")

        if formula is None:
            if "/" in name:
                self._check_tap(name, formula_id)
            raise FormulaNotFound(f"Could not find formula {name}", name=name)

        return formula

    def _check_tap(self, name: str, formula_id: str) -> None:
        if self.repositories is None:
            return

        parts = formula_id.split("/")
        if len(parts) < 3:
            return

        repository_id = "/".join(parts[:2])
        if self.repositories.find_by_id(repository_id) is None:
            raise RepositoryNotFound(
                f"Could not find repository {repository_id} for formula {name}",
                name=name,
            )

    def build(self, name: str) -> Dependency:
        return Dependency.build(self.resolve_formula(name).id)

    def optional(self, name: str) -> Dependency:
        return Dependency.optional(self.resolve_formula(name).id)

    def recommended(self, name: str) -> Dependency:
        return Dependency.recommended(self.resolve_formula(name).id)

    def runtime(self, name: str) -> Dependency:
        return Dependency.runtime(self.resolve_formula(name).id)
