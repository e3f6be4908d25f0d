"""Custom exceptions for formula metadata and history handling."""

from __future__ import annotations

from typing import Any, Dict, Optional


class FormulaError(Exception):
    """Base exception for formula failures."""


class UnresolvedReferenceError(FormulaError):
    """Raised when a dependency name does not point at anything stored."""

    def __init__(
        self,
        message: str,
        name: str,
        info: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.name = name
        self.info = info


class FormulaNotFound(UnresolvedReferenceError):
    """Raised when no formula matches a derived id or a bare name."""


class RepositoryNotFound(UnresolvedReferenceError):
    """Raised when the repository of a tap-qualified name is unknown."""


class MalformedFormulaInfo(FormulaError):
    """Raised when an ingestion record is missing a required field."""

    def __init__(self, message: str, field: str, info: Any = None):
        super().__init__(message)
        self.field = field
        self.info = info


class HistoryGenerationError(FormulaError):
    """Raised when the commit history of a formula file cannot be read."""


class RawFormulaFetchError(FormulaError):
    """Raised when a raw formula file cannot be downloaded."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
