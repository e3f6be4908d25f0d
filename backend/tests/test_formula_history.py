import shutil
import subprocess
import tempfile
import threading
import unittest
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import MagicMock, patch

from formulary.config import settings
from formulary.entities.formula import Formula
from formulary.entities.repository import Repository
from formulary.services.exceptions import HistoryGenerationError
from formulary.services.formula_history import FormulaHistoryService
from formulary.utils import git_utils


class TestFormulaHistoryService(unittest.TestCase):
    def setUp(self):
        self.locked = []
        clone_lock = threading.Lock()

        @contextmanager
        def local_lock(repository_id):
            with clone_lock:
                self.locked.append(repository_id)
                yield

        self.lock = local_lock

        self.test_dir = Path(tempfile.mkdtemp())
        # Remote laid out like `{GITHUB_URL}/{owner}/{repo}.git`
        self.remote = self.test_dir / "remote" / "Homebrew" / "homebrew-core.git"
        self.remote.mkdir(parents=True)
        self._init_repo()

        self.repos_dir = self.test_dir / "repos"
        self.db = MagicMock()
        self.revisions = self.db.__getitem__.return_value
        self.revisions.bulk_write.return_value.upserted_count = 0

        self.settings_patch = patch(
            "formulary.entities.repository.settings.GITHUB_URL",
            str(self.test_dir / "remote"),
        )
        self.settings_patch.start()

        self.repository = Repository(name="Homebrew/homebrew-core", formula_path="Formula")
        self.formula = Formula(name="git", repository=self.repository)
        self.service = FormulaHistoryService(
            self.db, repos_dir=self.repos_dir, lock=self.lock
        )

    def tearDown(self):
        self.settings_patch.stop()
        shutil.rmtree(self.test_dir)

    def _git(self, *args):
        return subprocess.run(
            ["git", *args], cwd=self.remote, check=True, capture_output=True, text=True
        ).stdout.strip()

    def _init_repo(self):
        self._git("init")
        self._git("branch", "-M", "master")
        self._git("config", "user.name", "Test User")
        self._git("config", "user.email", "test@example.com")

    def _commit(self, path, content, message):
        target = self.remote / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        self._git("add", path)
        self._git("commit", "-m", message)
        return self._git("rev-parse", "HEAD")

    def test_links_commits_touching_the_formula_file(self):
        c1 = self._commit("Formula/git.rb", "v1", "git 2.0.0 (new formula)")
        self._commit("Formula/wget.rb", "v1", "wget 1.0 (new formula)")
        c3 = self._commit("Formula/git.rb", "v2", "git: update | bump to 2.1.0")

        self.service.generate_formula_history(self.repository, self.formula)

        self.assertEqual(self.formula.revision_ids, [c3, c1])
        operations = self.revisions.bulk_write.call_args[0][0]
        self.assertEqual(len(operations), 2)
        self.assertIsNotNone(self.formula.date)

    def test_reads_subjects_with_separators(self):
        self._commit("Formula/git.rb", "v1", "git: a | b | c")
        repo_path = self.service.ensure_clone(self.repository)

        commits = list(git_utils.iter_file_history(repo_path, "Formula/git.rb"))

        self.assertEqual(commits[0]["subject"], "git: a | b | c")
        self.assertEqual(commits[0]["author_email"], "test@example.com")

    def test_fetches_new_commits_into_existing_clone(self):
        c1 = self._commit("Formula/git.rb", "v1", "git 2.0.0")
        self.service.generate_formula_history(self.repository, self.formula)
        c2 = self._commit("Formula/git.rb", "v2", "git 2.1.0")

        self.formula.generate_history(self.service)

        self.assertEqual(self.formula.revision_ids, [c2, c1])

    def test_formula_without_commits_gets_empty_history(self):
        self._commit("Formula/wget.rb", "v1", "wget 1.0")

        self.service.generate_formula_history(self.repository, self.formula)

        self.assertEqual(self.formula.revision_ids, [])
        self.revisions.bulk_write.assert_not_called()

    def test_clone_failure_raises_history_error(self):
        missing = Repository(name="Homebrew/homebrew-missing")
        formula = Formula(name="git", repository=missing)

        with self.assertRaises(HistoryGenerationError):
            self.service.generate_formula_history(missing, formula)

    def test_clone_and_fetch_hold_the_repository_lock(self):
        self._commit("Formula/git.rb", "v1", "git 2.0.0")

        self.service.ensure_clone(self.repository)
        self.service.ensure_clone(self.repository)

        self.assertEqual(self.locked, ["Homebrew/homebrew-core"] * 2)

    def test_concurrent_formulas_share_a_fresh_clone(self):
        git_sha = self._commit("Formula/git.rb", "v1", "git 2.0.0")
        wget_sha = self._commit("Formula/wget.rb", "v1", "wget 1.0")
        wget = Formula(name="wget", repository=self.repository)
        errors = []

        def generate(formula):
            try:
                self.service.generate_formula_history(self.repository, formula)
            except Exception as e:
                errors.append(e)

        threads = [
            threading.Thread(target=generate, args=(formula,))
            for formula in (self.formula, wget)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(self.formula.revision_ids, [git_sha])
        self.assertEqual(wget.revision_ids, [wget_sha])

    def test_log_uses_git_timeout(self):
        self._commit("Formula/git.rb", "v1", "git 2.0.0")

        with patch(
            "formulary.services.formula_history.git_utils.iter_file_history",
            return_value=iter([]),
        ) as iter_file_history:
            self.service.generate_formula_history(self.repository, self.formula)

        self.assertEqual(
            iter_file_history.call_args.kwargs["timeout"], settings.GIT_TIMEOUT
        )


class TestIterFileHistory(unittest.TestCase):
    def test_timeout_is_passed_to_git(self):
        line = git_utils.FIELD_SEP.join(
            ["a" * 40, "Test User", "test@example.com", "1523836800", "git 2.17.0"]
        )

        with patch("formulary.utils.git_utils.run_git", return_value=line) as run_git:
            commits = list(
                git_utils.iter_file_history(Path("/tmp/repo"), "Formula/git.rb", timeout=600)
            )

        self.assertEqual(run_git.call_args.kwargs["timeout"], 600)
        self.assertEqual(commits[0]["hexsha"], "a" * 40)
        self.assertEqual(commits[0]["date"].year, 2018)


if __name__ == "__main__":
    unittest.main()
