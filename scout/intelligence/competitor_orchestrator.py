"""
Concurrent competitor research.

Each competitor URL is one independent unit of work
(normalise -> fetch -> extract). Units run concurrently, a failed unit
never fails the batch, and successful results keep their submission order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Sequence

import structlog

from scout.core.config import Settings
from scout.core.exceptions import ExtractionError, LLMServiceError, UrlValidationError
from scout.core.models import CompetitorExtraction, FetchFailure, ScrapeResult
from scout.data.fetcher import ContentFetcher
from scout.data.url_normalizer import normalize_url
from scout.intelligence.extractor import StructuredExtractor

logger = structlog.get_logger(__name__)


@dataclass
class CompetitorBatch:
    """Fan-in of one orchestrated batch."""

    results: List[ScrapeResult] = field(default_factory=list)
    submitted: int = 0

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def dropped(self) -> int:
        return self.submitted - self.attempted

    @property
    def extractions(self) -> List[CompetitorExtraction]:
        """Successful extractions, in submission order."""
        return [r.data for r in self.results if r.success and r.data is not None]

    @property
    def succeeded_urls(self) -> List[str]:
        return [r.url for r in self.results if r.success and r.data is not None]

    @property
    def succeeded(self) -> int:
        return len(self.extractions)


class CompetitorOrchestrator:
    """Fan out over competitor URLs and fan the outcomes back in."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        extractor: StructuredExtractor,
        settings: Settings,
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor
        self.max_competitors = settings.max_competitors

    async def scrape(self, url: str) -> ScrapeResult:
        """
        Fetch and extract one already-normalised URL.

        Fetch and extraction failures are reported in the result, not raised.
        """
        outcome = await self.fetcher.fetch(url)
        if isinstance(outcome, FetchFailure):
            return ScrapeResult(
                url=url, success=False, error=f"Failed to fetch website: {outcome.reason}"
            )

        if outcome.truncated:
            logger.info("competitor_content_truncated", url=url, chars=len(outcome.content))

        try:
            data = await self.extractor.extract_competitor(url, outcome.content)
        except (ExtractionError, LLMServiceError) as exc:
            logger.warning("competitor_extract_failed", url=url, error=exc.message)
            return ScrapeResult(
                url=url, success=False, error=f"Failed to extract data: {exc.message}"
            )

        return ScrapeResult(url=url, success=True, data=data)

    async def run_unit(self, raw_url: str) -> ScrapeResult:
        """One unit of work: normalise, then fetch and extract."""
        try:
            url = normalize_url(raw_url)
        except UrlValidationError as exc:
            logger.info("competitor_url_rejected", raw=raw_url, reason=exc.reason)
            return ScrapeResult(url=str(raw_url), success=False, error=exc.message)
        return await self.scrape(url)

    async def gather(self, urls: Sequence[str]) -> CompetitorBatch:
        """
        Run up to ``max_competitors`` units concurrently and wait for all.

        Inputs beyond the cap are dropped, not queued. No unit is retried.
        """
        urls = list(urls or [])
        capped = urls[: self.max_competitors]
        batch = CompetitorBatch(submitted=len(urls))
        if not capped:
            return batch

        if len(urls) > len(capped):
            logger.info("competitor_inputs_dropped", submitted=len(urls), cap=self.max_competitors)

        tasks = [asyncio.create_task(self.run_unit(u)) for u in capped]
        settled = await asyncio.gather(*tasks, return_exceptions=True)

        for raw_url, result in zip(capped, settled):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("competitor_unit_crashed", url=raw_url, error=str(result))
                result = ScrapeResult(url=str(raw_url), success=False, error=str(result))
            batch.results.append(result)

        logger.info(
            "competitor_batch_completed",
            attempted=batch.attempted,
            succeeded=batch.succeeded,
        )
        return batch
