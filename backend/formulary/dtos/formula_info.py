"""Formula metadata ingestion DTOs"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from formulary.services.exceptions import MalformedFormulaInfo


class FormulaVersions(BaseModel):
    stable: Optional[str] = None
    devel: Optional[str] = None
    head: Optional[str] = None


class FormulaInfo(BaseModel):
    """
    Parsed recipe metadata for a single formula.

    `desc`, `homepage`, `keg_only` and `versions` must be present (the
    first two may be null). Dependency lists are optional; an absent or
    empty `dependencies` list means "no dependency data in this refresh".
    """

    desc: Optional[str]
    homepage: Optional[str]
    keg_only: bool
    versions: FormulaVersions
    revision: Optional[int] = None

    dependencies: List[str] = Field(default_factory=list)
    optional_dependencies: List[str] = Field(default_factory=list)
    recommended_dependencies: List[str] = Field(default_factory=list)
    build_dependencies: List[str] = Field(default_factory=list)

    @field_validator(
        "dependencies",
        "optional_dependencies",
        "recommended_dependencies",
        "build_dependencies",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @classmethod
    def parse(cls, formula_info: Dict[str, Any]) -> "FormulaInfo":
        try:
            return cls.model_validate(formula_info)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            raise MalformedFormulaInfo(
                f"Invalid formula info field '{field}': {error['msg']}",
                field=field,
                info=formula_info,
            ) from e

    def runtime_dependencies(self) -> List[str]:
        """Dependencies that are not optional, recommended or build-only."""
        classified = (
            set(self.optional_dependencies)
            | set(self.recommended_dependencies)
            | set(self.build_dependencies)
        )
        return [name for name in self.dependencies if name not in classified]
