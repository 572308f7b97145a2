"""
Research service: the single entry point for scrape, research and CSV runs.

Wires the fetcher, LLM client, extractor, orchestrator and aggregator from
one ``Settings`` instance. The LLM credential is checked at the start of
every operation, before any network call is attempted.
"""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from scout.core.config import Settings
from scout.core.models import CsvAnalysisEnvelope, ResearchResults, ScrapeResult, StageRequest
from scout.data.csv_parser import parse_customer_csv
from scout.data.fetcher import ContentFetcher
from scout.data.url_normalizer import normalize_url
from scout.intelligence.competitor_orchestrator import CompetitorOrchestrator
from scout.intelligence.extractor import StructuredExtractor
from scout.intelligence.llm_client import ChatCompleter, LLMClient
from scout.intelligence.research_aggregator import ResearchAggregator

logger = structlog.get_logger(__name__)


class ResearchService:
    """Stateless per request; holds only shared clients."""

    def __init__(
        self,
        settings: Settings,
        llm: Optional[ChatCompleter] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings
        self.fetcher = ContentFetcher(settings, client=http_client)
        self._llm = llm

    # --------------------------------------------------------------------- #
    # Wiring
    # --------------------------------------------------------------------- #

    def _llm_client(self) -> ChatCompleter:
        self.settings.require_llm_credential()
        if self._llm is None:
            self._llm = LLMClient(self.settings)
        return self._llm

    def _extractor(self) -> StructuredExtractor:
        return StructuredExtractor(self._llm_client(), self.settings)

    def _orchestrator(self, extractor: StructuredExtractor) -> CompetitorOrchestrator:
        return CompetitorOrchestrator(self.fetcher, extractor, self.settings)

    # --------------------------------------------------------------------- #
    # Operations
    # --------------------------------------------------------------------- #

    async def scrape_competitor(self, raw_url: str) -> ScrapeResult:
        """
        Scrape one competitor site.

        Raises:
            UrlValidationError: if ``raw_url`` cannot be normalised
            ConfigurationError: if the LLM credential is missing
        """
        url = normalize_url(raw_url)
        orchestrator = self._orchestrator(self._extractor())

        logger.info("scrape_started", url=url)
        result = await orchestrator.scrape(url)
        logger.info("scrape_finished", url=url, success=result.success)
        return result

    async def research(self, request: StageRequest) -> ResearchResults:
        """
        Run the full research pipeline for one stage request.

        Raises:
            ConfigurationError: if the LLM credential is missing
            SynthesisError: if the synthesis call itself fails
        """
        extractor = self._extractor()
        orchestrator = self._orchestrator(extractor)
        aggregator = ResearchAggregator(extractor, self.settings)

        logger.info(
            "research_started",
            product=request.product,
            stage=request.stage.value,
            competitors=len(request.competitors),
        )
        batch = await orchestrator.gather(request.competitors)
        results = await aggregator.run(request, batch)

        logger.info(
            "research_completed",
            request_id=results.request_id,
            competitors_analyzed=batch.succeeded,
            competitors_attempted=batch.attempted,
        )
        return results

    async def analyze_csv(self, csv_text: str) -> CsvAnalysisEnvelope:
        """
        Parse customer CSV text and synthesise segments.

        Raises:
            CSVParsingError: if the text is not header + delimited rows
            ConfigurationError: if the LLM credential is missing
            ExtractionError: if the model reply cannot be parsed
        """
        records = parse_customer_csv(csv_text)
        analysis = await self._extractor().analyze_segments(records)
        return CsvAnalysisEnvelope(total_records=records.total_records, analysis=analysis)

    async def aclose(self) -> None:
        await self.fetcher.aclose()
        close = getattr(self._llm, "aclose", None)
        if close is not None:
            await close()
