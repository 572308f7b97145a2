"""
Assembly of the final ``ResearchResults`` record.

Runs the stage's single synthesis call and merges it with the competitor
batch and optional CSV analysis. A malformed synthesis reply degrades to a
well-formed result carrying the raw text in ``analysis``; only a synthesis
call that raises is propagated.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import structlog
from pydantic import ValidationError as SchemaError

from scout.core.config import Settings
from scout.core.exceptions import (
    ExtractionError,
    LLMServiceError,
    SynthesisError,
    UrlValidationError,
)
from scout.core.models import (
    ResearchDepth,
    ResearchResults,
    StageRequest,
    new_request_id,
    utc_timestamp,
)
from scout.data.url_normalizer import normalize_url
from scout.intelligence.competitor_orchestrator import CompetitorBatch
from scout.intelligence.extractor import StructuredExtractor
from scout.intelligence.json_utils import parse_llm_json
from scout.intelligence.prompts import StageContext, StagePrompt, select_stage_prompt

logger = structlog.get_logger(__name__)

SOURCE_COMPETITOR_SITES = "Competitor website analysis"
SOURCE_LLM_RESEARCH = "LLM market research"
SOURCE_CUSTOMER_DATA = "Customer data analysis"
DATA_POINTS_PER_COMPETITOR = 10

# Keys owned by the aggregator; model-supplied values are overwritten.
METADATA_KEYS = (
    "requestId",
    "request_id",
    "timestamp",
    "stage",
    "dataSourcesCited",
    "data_sources_cited",
    "researchDepth",
    "research_depth",
)


def customer_patterns_from(additional_context: Any) -> Optional[str]:
    if additional_context is None:
        return None
    if isinstance(additional_context, dict):
        patterns = additional_context.get("customerPatterns")
        return str(patterns) if patterns else None
    return str(additional_context) or None


def fallback_competitor_profiles(batch: CompetitorBatch) -> List[Dict[str, Any]]:
    """Competitor sections built only from what was scraped."""
    profiles = []
    for url, data in zip(batch.succeeded_urls, batch.extractions):
        wire = data.to_wire()
        profiles.append(
            {
                "name": url,
                "website": url,
                "description": wire["description"],
                "pricing": wire["pricing"],
                "features": wire["features"],
                "targetMarket": wire["targetMarket"],
                "positioning": wire["positioning"],
                "strengths": [],
                "weaknesses": [],
            }
        )
    return profiles


def _site_key(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        host = urlsplit(normalize_url(value)).hostname or ""
    except UrlValidationError:
        return None
    return host[4:] if host.startswith("www.") else host


def merge_competitor_profiles(
    batch: CompetitorBatch, modelled: List[Any]
) -> List[Dict[str, Any]]:
    """
    One profile per scraped competitor, in submission order.

    A model profile is layered over the scraped one when its website (or
    name) matches the scraped host; unmatched model profiles are dropped.
    """
    by_site: Dict[str, Dict[str, Any]] = {}
    by_name: Dict[str, Dict[str, Any]] = {}
    for profile in modelled:
        if not isinstance(profile, dict):
            continue
        key = _site_key(profile.get("website") or profile.get("url"))
        if key:
            by_site.setdefault(key, profile)
        name = str(profile.get("name") or "").strip().lower()
        if name:
            by_name.setdefault(name, profile)

    merged = []
    for base in fallback_competitor_profiles(batch):
        key = _site_key(base["website"]) or ""
        match = by_site.get(key) or by_name.get(key.split(".")[0])
        profile = {**base, **match} if match else dict(base)
        profile["website"] = base["website"]
        merged.append(profile)
    return merged


class ResearchAggregator:
    """Own assembly of the final research record for one run."""

    def __init__(self, extractor: StructuredExtractor, settings: Settings) -> None:
        self.extractor = extractor
        self.settings = settings

    def build_prompt(self, request: StageRequest, batch: CompetitorBatch) -> StagePrompt:
        ctx = StageContext(
            product=request.product,
            target_market=request.target_market,
            competitor_data=tuple(c.to_wire() for c in batch.extractions),
            customer_patterns=customer_patterns_from(request.additional_context),
            csv_analysis=request.csv_analysis,
        )
        return select_stage_prompt(request.stage, ctx)

    async def synthesize(self, stage_prompt: StagePrompt) -> str:
        """Run the stage synthesis call, returning the raw reply text."""
        try:
            return await self.extractor.raw_completion(
                stage_prompt.prompt,
                system=stage_prompt.system,
                max_tokens=self.settings.synthesis_max_tokens,
                temperature=self.settings.synthesis_temperature,
            )
        except LLMServiceError as exc:
            logger.error("synthesis_call_failed", stage=stage_prompt.stage.value, error=exc.message)
            raise SynthesisError(exc.message) from exc

    async def run(self, request: StageRequest, batch: CompetitorBatch) -> ResearchResults:
        stage_prompt = self.build_prompt(request, batch)
        raw = await self.synthesize(stage_prompt)
        return self.assemble(stage_prompt, batch, raw)

    def assemble(self, stage_prompt: StagePrompt, batch: CompetitorBatch, raw: str) -> ResearchResults:
        """
        Merge synthesis output with scraped data and stamp run metadata.

        ``requestId`` and ``timestamp`` are assigned here, once, after every
        other section is in place.
        """
        try:
            sections = parse_llm_json(raw)
            degraded = False
        except ExtractionError as exc:
            logger.warning(
                "synthesis_parse_failed",
                stage=stage_prompt.stage.value,
                error=exc.message,
                raw_excerpt=exc.raw_excerpt,
            )
            sections = self._degraded_sections(batch, raw)
            degraded = True

        if batch.attempted:
            modelled = sections.get("competitors")
            sections["competitors"] = merge_competitor_profiles(
                batch, modelled if isinstance(modelled, list) else []
            )

        try:
            results = self._stamp(stage_prompt, batch, sections)
        except SchemaError as exc:
            if degraded:
                raise
            logger.warning("synthesis_schema_mismatch", error=str(exc))
            results = self._stamp(stage_prompt, batch, self._degraded_sections(batch, raw))

        logger.info(
            "research_assembled",
            request_id=results.request_id,
            stage=stage_prompt.stage.value,
            competitors=batch.succeeded,
            degraded=results.analysis is not None,
        )
        return results

    def _degraded_sections(self, batch: CompetitorBatch, raw: str) -> Dict[str, Any]:
        return {
            "competitors": fallback_competitor_profiles(batch),
            "icpProfiles": [],
            "analysis": raw,
        }

    def _data_sources(self, stage_prompt: StagePrompt) -> List[str]:
        sources = [SOURCE_COMPETITOR_SITES, SOURCE_LLM_RESEARCH]
        if stage_prompt.uses_csv_analysis:
            sources.append(SOURCE_CUSTOMER_DATA)
        return sources

    def _stamp(
        self, stage_prompt: StagePrompt, batch: CompetitorBatch, sections: Dict[str, Any]
    ) -> ResearchResults:
        payload = {k: v for k, v in sections.items() if k not in METADATA_KEYS}
        if not isinstance(payload.get("analysis"), (str, type(None))):
            payload["analysis"] = str(payload["analysis"])

        depth = ResearchDepth(
            competitors_analyzed=batch.succeeded,
            competitors_requested=batch.attempted,
            reviews_analyzed=0,
            data_points_collected=batch.succeeded * DATA_POINTS_PER_COMPETITOR,
        )
        return ResearchResults.model_validate(
            {
                **payload,
                "stage": stage_prompt.stage.value,
                "dataSourcesCited": self._data_sources(stage_prompt),
                "researchDepth": depth,
                "requestId": new_request_id(),
                "timestamp": utc_timestamp(),
            }
        )
