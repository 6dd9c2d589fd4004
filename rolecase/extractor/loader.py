"""Page loaders.

Getting a page into the extractor is a collaborator concern: a browser
extension injects a script, the CLI fetches over HTTP or reads a saved
file. Each source implements :class:`PageLoader`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import httpx

from rolecase.errors import ExtractionFailure
from rolecase.extractor.config import ExtractorConfig, get_extractor_config
from rolecase.extractor.page import Page

logger = logging.getLogger(__name__)


class PageLoader(Protocol):
    """Anything that can produce a :class:`Page` for a URL."""

    async def load(self, url: str) -> Page: ...


class HttpPageLoader:
    """Fetch pages over HTTP with httpx."""

    def __init__(
        self,
        config: ExtractorConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_extractor_config()
        self._client = client

    async def load(self, url: str) -> Page:
        """Fetch ``url`` and parse it.

        Raises:
            ExtractionFailure: If the page cannot be fetched.
        """
        logger.info(f"Fetching page: {url}")
        headers = {"User-Agent": self.config.user_agent}
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(
                    timeout=self.config.request_timeout, follow_redirects=True
                ) as client:
                    response = await client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ExtractionFailure(f"Could not fetch page: {e}", e) from e

        return Page.from_html(response.text, str(response.url))


class FilePageLoader:
    """Read a saved HTML file, attributing it to a given URL."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    async def load(self, url: str) -> Page:
        try:
            markup = self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ExtractionFailure(f"Could not read {self.path}: {e}", e) from e
        return Page.from_html(markup, url)
