"""
Formula Entity - A package build recipe hosted in a repository.

The document id is derived from the owning repository and the formula name
(`{repository}/{name}`) and is recomputed whenever either of them changes.
Dependencies are embedded documents replaced wholesale on every metadata
update; history is a list of revision shas.
"""

from __future__ import annotations

import logging
import posixpath
from datetime import datetime
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Literal,
    Mapping,
    Optional,
    Protocol,
)

from pydantic import Field, PrivateAttr

from formulary.config import settings
from formulary.dtos.formula_info import FormulaInfo
from formulary.entities.base import BaseEntity
from formulary.entities.dependency import Dependency
from formulary.entities.repository import Repository
from formulary.services.exceptions import UnresolvedReferenceError

if TYPE_CHECKING:
    from formulary.services.dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)

Spec = Literal["stable", "devel", "head"]


class FormulaHistory(Protocol):
    """Builds revision history for a formula file of a repository."""

    def generate_formula_history(self, repository: Repository, formula: "Formula") -> None: ...


class FormulaCounter(Protocol):
    def count_by_name(self, name: str) -> int: ...


class Formula(BaseEntity):
    class Config:
        collection = "formulas"

    repository_id: str = Field(
        ...,
        description="Name of the owning repository (owner/repo)",
    )
    name: str = Field(..., description="Short name without repository prefix")
    aliases: List[str] = Field(default_factory=list)
    date: Optional[datetime] = None
    description: Optional[str] = None
    homepage: Optional[str] = None

    stable_version: Optional[str] = None
    devel_version: Optional[str] = None
    head_version: Optional[str] = None
    revision: Optional[int] = None

    keg_only: bool = False
    removed: bool = False

    deps: List[Dependency] = Field(default_factory=list)
    revision_ids: List[str] = Field(
        default_factory=list,
        description="Shas of revisions that changed this formula",
    )

    _repository: Optional[Repository] = PrivateAttr(default=None)

    def __init__(self, repository: Optional[Repository] = None, **data):
        if repository is not None:
            data["repository_id"] = repository.name
        super().__init__(**data)
        self._repository = repository
        if self.id is None:
            self.assign_id()

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "repository":
            self.bind(value)
            return
        super().__setattr__(name, value)
        if name in ("name", "repository_id"):
            self.assign_id()

    def model_copy(
        self, *, update: Optional[Mapping[str, Any]] = None, deep: bool = False
    ) -> "Formula":
        copy = super().model_copy(update=update, deep=deep)
        if update and "id" not in update and {"name", "repository_id"} & set(update):
            copy.assign_id()
            bound = copy._repository
            if bound is not None and bound.name != copy.repository_id:
                copy._repository = None
        return copy

    # === Identity ===

    def assign_id(self) -> None:
        super().__setattr__("id", f"{self.repository_id}/{self.name}")

    def bind(self, repository: Repository) -> "Formula":
        """Attach the owning repository, re-deriving the id if it changed."""
        self._repository = repository
        if repository.name != self.repository_id:
            self.repository_id = repository.name
        return self

    @property
    def repository(self) -> Repository:
        if self._repository is None:
            raise ValueError(f"Formula {self.id} is not bound to its repository")
        return self._repository

    def to_param(self) -> str:
        return self.name

    # === Versions ===

    def best_spec(self) -> Optional[Spec]:
        if self.stable_version:
            return "stable"
        elif self.devel_version:
            return "devel"
        elif self.head_version:
            return "head"
        return None

    def version(self) -> Optional[str]:
        return self.stable_version or self.devel_version or self.head_version

    def versions(self) -> List[str]:
        return [
            v
            for v in (self.stable_version, self.devel_version, self.head_version)
            if v
        ]

    def is_duplicate(self, formulas: FormulaCounter) -> bool:
        """True if another formula with the same name exists in any repository."""
        return formulas.count_by_name(self.name) > 1

    # === Location ===

    def path(self) -> str:
        formula_path = self.repository.formula_path
        if formula_path is None:
            return f"{self.name}.rb"
        return posixpath.join(formula_path, self.name) + ".rb"

    def raw_url(self) -> str:
        return f"{settings.RAW_BASE_URL}/{self.repository.name}/HEAD/{self.path()}"

    # === Updates ===

    def update_metadata(
        self,
        formula_info: Dict[str, Any],
        resolver: "DependencyResolver",
    ) -> None:
        """
        Apply freshly parsed recipe metadata.

        Scalar fields are replaced unconditionally. The dependency list is
        replaced only when `dependencies` is non-empty, and only after every
        name has been resolved, so a failing name leaves `deps` untouched.

        Raises:
            MalformedFormulaInfo: If a required field is missing
            FormulaNotFound: If a dependency cannot be resolved
            RepositoryNotFound: If a tap dependency points at an unknown repository
        """
        info = FormulaInfo.parse(formula_info)

        self.description = info.desc
        self.homepage = info.homepage
        self.keg_only = info.keg_only
        self.stable_version = info.versions.stable
        self.devel_version = info.versions.devel
        self.head_version = info.versions.head
        self.revision = info.revision

        if not info.dependencies:
            return

        try:
            deps = [resolver.optional(dep) for dep in info.optional_dependencies]
            deps += [resolver.recommended(dep) for dep in info.recommended_dependencies]
            deps += [resolver.build(dep) for dep in info.build_dependencies]
            deps += [resolver.runtime(dep) for dep in info.runtime_dependencies()]
        except UnresolvedReferenceError as e:
            e.info = formula_info
            logger.error(
                f"Failed to resolve dependency {e.name} of {self.id}: {formula_info}",
                extra={"formula_id": self.id},
            )
            raise

        self.deps = deps

    def generate_history(self, history: FormulaHistory) -> None:
        """
        Rebuild the revision history of this formula.

        History is cleared first; if the repository walk fails afterwards the
        formula stays without history until a later call succeeds.
        """
        self.revision_ids = []
        history.generate_formula_history(self.repository, self)
