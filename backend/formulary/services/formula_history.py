"""
Formula history generation.

Walks the commit log of a formula file inside a bare clone of its
repository and links one Revision per commit to the formula.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any, Callable, ContextManager, List, Optional

from pymongo.database import Database

from formulary.config import settings
from formulary.entities.formula import Formula
from formulary.entities.repository import Repository
from formulary.entities.revision import Revision
from formulary.repositories.revision import RevisionRepository
from formulary.services.exceptions import HistoryGenerationError
from formulary.utils import git_utils
from formulary.utils.locking import repository_lock

logger = logging.getLogger(__name__)


class FormulaHistoryService:
    def __init__(
        self,
        db: Database,
        repos_dir: Optional[Path] = None,
        lock: Callable[[str], ContextManager[Any]] = repository_lock,
    ):
        self.db = db
        self.repos_dir = Path(repos_dir or settings.REPOS_DIR)
        self.revision_repo = RevisionRepository(db)
        self._lock = lock

    def repo_path(self, repository: Repository) -> Path:
        return self.repos_dir / repository.name.replace("/", "__")

    def ensure_clone(self, repository: Repository) -> Path:
        """Clone the repository if needed, otherwise fetch the latest commits."""
        repo_path = self.repo_path(repository)
        try:
            with self._lock(repository.name):
                self._clone_or_fetch(repository, repo_path)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            stderr = getattr(e, "stderr", None)
            logger.error(f"Git operation failed for {repository.name}: {stderr or e}")
            raise HistoryGenerationError(
                f"Could not update clone of {repository.name}"
            ) from e
        return repo_path

    def _clone_or_fetch(self, repository: Repository, repo_path: Path) -> None:
        if repo_path.exists():
            logger.info(f"Fetching {repository.name}")
            git_utils.run_git(
                repo_path,
                ["fetch", "--prune", "origin", "+refs/heads/*:refs/heads/*"],
                timeout=settings.GIT_TIMEOUT,
            )
        else:
            logger.info(f"Cloning {repository.name} to {repo_path}")
            git_utils.clone_bare(repository.url, repo_path, timeout=settings.GIT_TIMEOUT)

    def generate_formula_history(self, repository: Repository, formula: Formula) -> None:
        """
        Link every commit that touched the formula file to the formula.

        Revisions are stored right away; the formula itself is only mutated
        (`revision_ids`, `date`) and saving it is left to the caller.
        """
        repo_path = self.ensure_clone(repository)
        file_path = formula.path()

        try:
            commits = list(
                git_utils.iter_file_history(
                    repo_path, file_path, timeout=settings.GIT_TIMEOUT
                )
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            logger.error(f"Failed to read history of {file_path} in {repository.name}: {e}")
            raise HistoryGenerationError(
                f"Could not read history of {formula.id}"
            ) from e

        revisions: List[Revision] = [
            Revision(
                _id=commit["hexsha"],
                repository_id=repository.name,
                author_name=commit["author_name"],
                author_email=commit["author_email"],
                date=commit["date"],
                subject=commit["subject"],
            )
            for commit in commits
        ]

        inserted = self.revision_repo.bulk_upsert(revisions)
        for revision in revisions:
            if revision.id not in formula.revision_ids:
                formula.revision_ids.append(revision.id)

        if revisions:
            formula.date = revisions[0].date

        logger.info(
            f"Generated history of {formula.id}: {len(revisions)} revisions ({inserted} new)",
            extra={"formula_id": formula.id, "repository_id": repository.name},
        )
