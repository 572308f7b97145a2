"""
Structured extraction on top of the LLM client.

Every model reply passes through the response sanitizer and a schema gate
before anything downstream sees it. Parse failures surface as
``ExtractionError``; callers decide whether to degrade or propagate.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from scout.core.config import Settings
from scout.core.exceptions import ExtractionError
from scout.core.models import CompetitorExtraction, CsvSegmentAnalysis
from scout.data.csv_parser import CustomerRecords
from scout.intelligence.json_utils import parse_llm_json
from scout.intelligence.llm_client import ChatCompleter
from scout.intelligence.prompts import competitor_extraction_prompt, csv_segmentation_prompt

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(model: Type[ModelT], payload: Dict[str, Any], raw: str) -> ModelT:
    """Apply the schema gate, converting violations into ``ExtractionError``."""
    try:
        if model is CompetitorExtraction:
            return CompetitorExtraction.from_payload(payload)
        return model.model_validate(payload)
    except SchemaError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()[:5]
        )
        raise ExtractionError(
            f"Model response does not match the {model.__name__} schema: {problems}",
            raw_response=raw,
        ) from exc


class StructuredExtractor:
    """Turn free text into typed records via one LLM call each."""

    def __init__(self, llm: ChatCompleter, settings: Settings) -> None:
        self.llm = llm
        self.settings = settings

    async def raw_completion(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        return await self.llm.complete(
            prompt, system=system, max_tokens=max_tokens, temperature=temperature
        )

    async def extract(
        self,
        model: Type[ModelT],
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ModelT:
        raw = await self.raw_completion(
            prompt, system=system, max_tokens=max_tokens, temperature=temperature
        )
        try:
            payload = parse_llm_json(raw)
            return validate_payload(model, payload, raw)
        except ExtractionError as exc:
            logger.warning(
                "extraction_failed",
                record=model.__name__,
                error=exc.message,
                raw_excerpt=exc.raw_excerpt,
            )
            raise

    async def extract_competitor(self, url: str, content: str) -> CompetitorExtraction:
        """Extract pricing, features and positioning from one competitor page."""
        return await self.extract(
            CompetitorExtraction,
            competitor_extraction_prompt(url, content),
            max_tokens=self.settings.competitor_max_tokens,
        )

    async def analyze_segments(self, records: CustomerRecords) -> CsvSegmentAnalysis:
        """Segment customer rows; only the first ``csv_context_rows`` are sent."""
        limit = self.settings.csv_context_rows
        rows = records.context_rows(limit)
        if records.is_truncated(limit):
            logger.info(
                "csv_context_truncated",
                total_records=records.total_records,
                sent=len(rows),
            )
        return await self.extract(
            CsvSegmentAnalysis,
            csv_segmentation_prompt(rows, records.total_records),
            max_tokens=self.settings.csv_max_tokens,
        )
