import unittest
from unittest.mock import MagicMock, patch

from redis.exceptions import LockNotOwnedError

from formulary.config import settings
from formulary.utils.locking import formula_lock, repository_lock


class TestFormulaLock(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.lock = self.client.lock.return_value

    def test_lock_is_keyed_on_formula_id(self):
        with formula_lock("Homebrew/homebrew-core/git", client=self.client, timeout=30):
            self.lock.acquire.assert_called_once_with(blocking=True)
            self.lock.release.assert_not_called()

        self.client.lock.assert_called_once_with(
            "formula_lock:Homebrew/homebrew-core/git", timeout=30
        )
        self.lock.release.assert_called_once_with()

    def test_lock_is_released_on_error(self):
        with self.assertRaises(RuntimeError):
            with formula_lock("Homebrew/homebrew-core/git", client=self.client):
                raise RuntimeError("boom")

        self.lock.release.assert_called_once_with()

    def test_expired_lock_does_not_mask_result(self):
        self.lock.release.side_effect = LockNotOwnedError("expired")

        with formula_lock("Homebrew/homebrew-core/git", client=self.client):
            pass

        self.lock.release.assert_called_once_with()


class TestRepositoryLock(unittest.TestCase):
    def test_lock_is_keyed_on_repository_id(self):
        client = MagicMock()

        with patch("formulary.utils.locking.settings.REPOSITORY_LOCK_TIMEOUT", 900):
            with repository_lock("Homebrew/homebrew-core", client=client):
                client.lock.return_value.acquire.assert_called_once_with(blocking=True)

        client.lock.assert_called_once_with(
            "repository_lock:Homebrew/homebrew-core", timeout=900
        )
        client.lock.return_value.release.assert_called_once_with()

    def test_formula_lock_outlives_git_timeout(self):
        self.assertGreater(
            settings.FORMULA_LOCK_TIMEOUT,
            settings.REPOSITORY_LOCK_TIMEOUT + 2 * settings.GIT_TIMEOUT,
        )
        self.assertGreater(settings.REPOSITORY_LOCK_TIMEOUT, settings.GIT_TIMEOUT)


if __name__ == "__main__":
    unittest.main()
