"""Tests for wire models and the extraction schema gate."""

import asyncio

import pydantic
import pytest

from doubles import DummyLLM
from scout.core.exceptions import ConfigurationError, ExtractionError
from scout.core.models import (
    CompetitorExtraction,
    CsvSegmentAnalysis,
    ScrapeResult,
    Stage,
    StageRequest,
)
from scout.intelligence.extractor import StructuredExtractor
from scout.intelligence.llm_client import LLMClient


class TestCompetitorExtraction:
    def test_nulls_become_empty_values(self):
        data = CompetitorExtraction.model_validate(
            {"description": None, "pricing": None, "features": None, "targetMarket": None}
        )

        assert data.description == ""
        assert data.pricing_tiers == []
        assert data.features == []
        assert data.target_market == ""

    def test_accepts_pricing_tiers_key_and_bare_quotes(self):
        data = CompetitorExtraction.from_payload(
            {
                "pricingTiers": [{"tier": "Free", "price": "$0"}],
                "testimonials": ["Loved it"],
                "features": ["Sync", ""],
            }
        )

        assert data.pricing_tiers[0].tier == "Free"
        assert data.testimonials[0].quote == "Loved it"
        assert data.features == ["Sync"]

    def test_numeric_prices_are_kept_as_text(self):
        data = CompetitorExtraction.from_payload({"pricing": [{"tier": "Free", "price": 0}]})

        assert data.pricing_tiers[0].price == "0"

    def test_wire_uses_camel_case(self):
        wire = CompetitorExtraction(target_market="SMBs").to_wire()

        assert wire["targetMarket"] == "SMBs"
        assert wire["pricing"] == []


class TestScrapeResult:
    def test_failure_has_no_data_key(self):
        wire = ScrapeResult(url="https://a.com/", success=False, error="boom").to_wire()
        assert wire == {"url": "https://a.com/", "success": False, "error": "boom"}


class TestStageRequest:
    def test_stage_is_enum(self):
        request = StageRequest.model_validate({"product": " Notes ", "stage": "scale-up"})

        assert request.stage is Stage.SCALE_UP
        assert request.product == "Notes"
        assert request.competitors == []

    def test_unknown_stage_is_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            StageRequest.model_validate({"product": "Notes", "stage": "growth"})


class TestStructuredExtractor:
    def test_numeric_rates_do_not_fail_segmentation(self, settings):
        llm = DummyLLM(
            csv_reply='{"segments": [{"name": "CTOs", "conversionRate": 18, "churnRate": 4.5}]}'
        )
        extractor = StructuredExtractor(llm, settings)

        analysis = asyncio.run(extractor.extract(CsvSegmentAnalysis, "Analyze this customer data"))

        assert analysis.segments[0].conversion_rate == "18"
        assert analysis.segments[0].churn_rate == "4.5"

    def test_schema_violation_is_extraction_error(self, settings):
        llm = DummyLLM(csv_reply='{"segments": [{"count": "many"}]}')
        extractor = StructuredExtractor(llm, settings)

        with pytest.raises(ExtractionError, match="CsvSegmentAnalysis"):
            asyncio.run(
                extractor.extract(CsvSegmentAnalysis, "Analyze this customer data please")
            )

    def test_fenced_reply_is_accepted(self, settings):
        llm = DummyLLM(csv_reply='```json\n{"insights": ["x"]}\n```')
        extractor = StructuredExtractor(llm, settings)

        analysis = asyncio.run(extractor.extract(CsvSegmentAnalysis, "Analyze this customer data"))

        assert analysis.insights == ["x"]
        assert analysis.segments == []


class TestLLMClient:
    def test_requires_credential(self, keyless_settings):
        with pytest.raises(ConfigurationError):
            LLMClient(keyless_settings)
