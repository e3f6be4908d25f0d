"""
Git Utilities using subprocess.

Provides the few git operations needed to read the history of formula
files from a bare clone.
"""

import logging
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator, List

logger = logging.getLogger(__name__)

# Unit separator keeps commit subjects containing "|" intact
FIELD_SEP = "\x1f"


def run_git(
    repo_path: Path,
    args: List[str],
    timeout: int = 60,
) -> str:
    """Run a git command and return stdout."""
    result = subprocess.run(
        ["git"] + args,
        cwd=str(repo_path),
        capture_output=True,
        text=True,
        timeout=timeout,
    )
    if result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, ["git"] + args, result.stdout, result.stderr
        )
    return result.stdout.strip()


def clone_bare(url: str, repo_path: Path, timeout: int = 600) -> None:
    """Partial bare clone: commits and trees only, blobs fetched on demand."""
    repo_path.parent.mkdir(parents=True, exist_ok=True)
    run_git(
        repo_path.parent,
        ["clone", "--bare", "--filter=blob:none", url, str(repo_path)],
        timeout=timeout,
    )


def iter_file_history(
    repo_path: Path,
    file_path: str,
    rev: str = "HEAD",
    timeout: int = 60,
) -> Generator[Dict[str, Any], None, None]:
    """
    Iterate the commits that touched `file_path`, newest first.

    Yields dicts with: hexsha, author_name, author_email, date, subject
    """
    fmt = FIELD_SEP.join(["%H", "%an", "%ae", "%at", "%s"])
    output = run_git(
        repo_path,
        ["log", "--follow", f"--format={fmt}", rev, "--", file_path],
        timeout=timeout,
    )

    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split(FIELD_SEP)
        if len(parts) < 5:
            logger.warning(f"Skipping malformed log line for {file_path}: {line!r}")
            continue
        hexsha, author_name, author_email, timestamp, subject = parts[:5]
        yield {
            "hexsha": hexsha,
            "author_name": author_name,
            "author_email": author_email,
            "date": datetime.fromtimestamp(int(timestamp), tz=timezone.utc),
            "subject": subject,
        }
