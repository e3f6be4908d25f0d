"""
Dependency Entity - A classified edge from one formula to another.

Dependencies are embedded inside their owning formula document and have no
identity of their own. The type is stored as a small integer code.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from formulary.entities.formula import Formula


class DependencyType(IntEnum):
    BUILD = 0
    RUNTIME = 1
    RECOMMENDED = 2
    OPTIONAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class FormulaLookup(Protocol):
    """Read access to stored formulas."""

    def find_by_id(self, formula_id: str) -> Optional["Formula"]: ...

    def find_by_name(self, name: str) -> Optional["Formula"]: ...


class Dependency(BaseModel):
    """A single dependency of a formula on another formula."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, use_enum_values=True)

    formula_id: str = Field(
        ...,
        alias="_id",
        description="Id of the formula being depended upon",
    )
    type: DependencyType

    @classmethod
    def build(cls, formula_id: str) -> "Dependency":
        return cls(formula_id=formula_id, type=DependencyType.BUILD)

    @classmethod
    def optional(cls, formula_id: str) -> "Dependency":
        return cls(formula_id=formula_id, type=DependencyType.OPTIONAL)

    @classmethod
    def recommended(cls, formula_id: str) -> "Dependency":
        return cls(formula_id=formula_id, type=DependencyType.RECOMMENDED)

    @classmethod
    def runtime(cls, formula_id: str) -> "Dependency":
        return cls(formula_id=formula_id, type=DependencyType.RUNTIME)

    @property
    def label(self) -> str:
        """Symbolic name of the stored type code (build, runtime, ...)."""
        return DependencyType(self.type).label

    def formula(self, formulas: FormulaLookup) -> Optional["Formula"]:
        """
        Dereference the target formula.

        Returns None when the target has been removed since the dependency
        was recorded.
        """
        return formulas.find_by_id(self.formula_id)
