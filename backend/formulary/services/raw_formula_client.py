"""Download raw formula files from GitHub."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from formulary.config import settings
from formulary.entities.formula import Formula
from formulary.services.exceptions import FormulaNotFound, RawFormulaFetchError

logger = logging.getLogger(__name__)


class RawFormulaClient:
    """
    Fetches the recipe file of a formula from the tip of its repository's
    default branch.

    Usage:
        with RawFormulaClient() as client:
            source = client.fetch(formula)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers: Dict[str, str] = {}
        token = token or settings.GITHUB_TOKEN
        if token:
            headers["Authorization"] = f"token {token}"

        self._client = httpx.Client(
            timeout=timeout or settings.HTTP_TIMEOUT,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self) -> "RawFormulaClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch(self, formula: Formula) -> str:
        url = formula.raw_url()
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"Request for {url} failed: {e}")
            raise RawFormulaFetchError(f"Could not fetch {url}: {e}") from e

        if response.status_code == 404:
            raise FormulaNotFound(
                f"Formula file {formula.path()} not found in {formula.repository_id}",
                name=formula.name,
            )
        if response.status_code != 200:
            logger.warning(f"Fetching {url} returned {response.status_code}")
            raise RawFormulaFetchError(
                f"Could not fetch {url}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        return response.text
