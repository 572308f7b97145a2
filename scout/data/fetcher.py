"""
Bounded content fetcher for competitor websites.

Issues one GET per URL with a browser-like identity, a wall-clock timeout
and a character cap. Every outcome is returned as a ``FetchOutcome``; no
exception crosses the public boundary.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx
import structlog

from scout.core.config import Settings
from scout.core.models import FetchFailure, FetchOutcome, FetchSuccess

logger = structlog.get_logger(__name__)


class ContentFetcher:
    """Fetch raw page text under a timeout and size budget."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> None:
        self.timeout = settings.fetch_timeout
        self.max_chars = settings.max_content_chars
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(settings.fetch_timeout),
        )
        self.headers = {
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def fetch(self, url: str) -> FetchOutcome:
        """Fetch ``url`` (already normalised) and cap its text content."""
        try:
            response = await asyncio.wait_for(
                self.client.get(url, headers=self.headers, follow_redirects=True), timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("fetch_timeout", url=url, timeout=self.timeout)
            return FetchFailure(url=url, reason="timeout")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            reason = str(exc) or exc.__class__.__name__
            logger.warning("fetch_transport_error", url=url, error=reason)
            return FetchFailure(url=url, reason=reason)
        except Exception as exc:  # noqa: BLE001
            logger.exception("fetch_unexpected_error", url=url)
            return FetchFailure(url=url, reason=str(exc) or exc.__class__.__name__)

        if not response.is_success:
            reason = f"HTTP {response.status_code}: {response.reason_phrase}".rstrip(": ")
            logger.warning("fetch_bad_status", url=url, status=response.status_code)
            return FetchFailure(url=url, reason=reason)

        content = response.text

        truncated = len(content) > self.max_chars
        if truncated:
            content = content[: self.max_chars]

        logger.debug(
            "fetch_completed",
            url=url,
            status=response.status_code,
            chars=len(content),
            truncated=truncated,
        )
        return FetchSuccess(
            url=url, content=content, truncated=truncated, status_code=response.status_code
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
