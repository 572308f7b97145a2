"""
Data models and type definitions for the Scout research service.

Provides type-safe data structures with validation for requests, LLM
extractions and the final research artifact. Wire names follow the JSON
contract consumed by the front-end (camelCase).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class Stage(str, Enum):
    """Startup stage; fixed for the lifetime of one research run."""

    PRE_LAUNCH = "pre-launch"
    EARLY_STAGE = "early-stage"
    POST_REVENUE = "post-revenue"
    SCALE_UP = "scale-up"

    @property
    def accepts_csv_analysis(self) -> bool:
        return self in (Stage.POST_REVENUE, Stage.SCALE_UP)


class WireModel(BaseModel):
    """
    Base for models exchanged with the LLM or the HTTP boundary.

    Explicit ``null`` values for optional fields collapse to the field
    default so consumers always see empty strings/collections.
    """

    model_config = ConfigDict(
        populate_by_name=True, use_enum_values=True, coerce_numbers_to_str=True
    )

    @field_validator("*", mode="before")
    @classmethod
    def null_to_default(cls, v, info: ValidationInfo):
        if v is not None or info.field_name is None:
            return v
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return v
        return field.get_default(call_default_factory=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# Fetching


@dataclass(frozen=True)
class FetchSuccess:
    url: str
    content: str
    truncated: bool = False
    status_code: int = 200

    ok = True


@dataclass(frozen=True)
class FetchFailure:
    url: str
    reason: str

    ok = False


FetchOutcome = Union[FetchSuccess, FetchFailure]


# Competitor extraction


class PricingTier(WireModel):
    tier: str = ""
    price: str = ""
    features: List[str] = Field(default_factory=list)


class Testimonial(WireModel):
    quote: str = ""
    company: Optional[str] = None
    role: Optional[str] = None


class CompetitorExtraction(WireModel):
    """Structured facts pulled from one competitor's website."""

    description: str = ""
    pricing_tiers: List[PricingTier] = Field(
        default_factory=list,
        validation_alias="pricing",
        serialization_alias="pricing",
    )
    features: List[str] = Field(default_factory=list)
    target_market: str = Field(default="", alias="targetMarket")
    positioning: str = ""
    testimonials: List[Testimonial] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("testimonials", mode="before")
    @classmethod
    def bare_quotes(cls, v):
        if isinstance(v, list):
            return [{"quote": t} if isinstance(t, str) else t for t in v]
        return v

    @field_validator("features", mode="after")
    @classmethod
    def drop_blank_features(cls, v: List[str]) -> List[str]:
        return [f for f in v if f]

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CompetitorExtraction":
        """Build from a raw LLM payload, accepting ``pricingTiers`` for ``pricing``."""
        data = dict(data)
        if "pricing" not in data and "pricingTiers" in data:
            data["pricing"] = data.pop("pricingTiers")
        return cls.model_validate(data)


class ScrapeResult(WireModel):
    """Outcome of one competitor unit, reported as data rather than an HTTP error."""

    url: str
    success: bool
    data: Optional[CompetitorExtraction] = None
    error: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        payload = super().to_wire()
        if self.success:
            payload.pop("error", None)
        else:
            payload.pop("data", None)
        return payload


# Requests


class StageRequest(WireModel):
    """Input for one research run."""

    product: str = Field(..., min_length=1)
    stage: Stage
    target_market: Optional[str] = Field(default=None, alias="targetMarket")
    competitors: List[str] = Field(default_factory=list)
    additional_context: Optional[Any] = Field(default=None, alias="additionalContext")
    csv_analysis: Optional[Any] = Field(default=None, alias="csvAnalysis")

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False, extra="ignore")

    @field_validator("product", mode="before")
    @classmethod
    def strip_product(cls, v):
        return v.strip() if isinstance(v, str) else v


class ScrapeRequest(BaseModel):
    url: str = Field(..., min_length=1)


class CsvAnalysisRequest(BaseModel):
    csv_data: str = Field(..., alias="csvData", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


# CSV segmentation


class CustomerSegment(WireModel):
    name: str = ""
    count: int = 0
    avg_deal_size: float = Field(default=0, alias="avgDealSize")
    conversion_rate: str = Field(default="", alias="conversionRate")
    ltv: float = 0
    churn_rate: str = Field(default="", alias="churnRate")
    traits: List[str] = Field(default_factory=list)


class CsvSegmentAnalysis(WireModel):
    """Segment synthesis for one CSV upload; immutable once returned."""

    segments: List[CustomerSegment] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    winning_profile: str = Field(default="", alias="winningProfile")
    segment_to_avoid: Optional[str] = Field(default=None, alias="segmentToAvoid")

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class CsvAnalysisEnvelope(WireModel):
    success: bool = True
    total_records: int = Field(..., alias="totalRecords")
    analysis: CsvSegmentAnalysis


# Research results


class ResearchDepth(WireModel):
    competitors_analyzed: int = Field(default=0, alias="competitorsAnalyzed")
    competitors_requested: int = Field(default=0, alias="competitorsRequested")
    reviews_analyzed: int = Field(default=0, alias="reviewsAnalyzed")
    data_points_collected: int = Field(default=0, alias="dataPointsCollected")


class ResearchResults(WireModel):
    """
    Final research artifact for one completed run.

    ``request_id`` and ``timestamp`` identify the completed run and are
    assigned by the aggregator at the end of assembly. Sections the model
    did not return default to empty objects or lists; any extra keys the
    model produced are kept.
    """

    request_id: str = Field(..., alias="requestId")
    timestamp: str
    stage: Stage
    competitors: List[Any] = Field(default_factory=list)
    icp_profiles: List[Any] = Field(default_factory=list, alias="icpProfiles")
    market_data: Dict[str, Any] = Field(default_factory=dict, alias="marketData")
    swot_analyses: List[Any] = Field(default_factory=list, alias="swotAnalyses")
    porters_five_forces: Dict[str, Any] = Field(default_factory=dict, alias="portersFiveForces")
    positioning: Dict[str, Any] = Field(default_factory=dict)
    pricing: Dict[str, Any] = Field(default_factory=dict)
    gtm_channels: List[Any] = Field(default_factory=list, alias="gtmChannels")
    action_plan: List[Any] = Field(default_factory=list, alias="actionPlan")
    data_sources_cited: List[str] = Field(default_factory=list, alias="dataSourcesCited")
    research_depth: ResearchDepth = Field(default_factory=ResearchDepth, alias="researchDepth")
    analysis: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True, use_enum_values=True, frozen=True, extra="allow"
    )

    @field_validator(
        "competitors",
        "icp_profiles",
        "swot_analyses",
        "gtm_channels",
        "action_plan",
        mode="before",
    )
    @classmethod
    def coerce_list(cls, v):
        if v is None:
            return []
        if isinstance(v, list):
            return v
        return [v]

    @field_validator("market_data", "porters_five_forces", "positioning", "pricing", mode="before")
    @classmethod
    def coerce_section(cls, v):
        if v is None:
            return {}
        if isinstance(v, dict):
            return v
        # A bare string or list is kept rather than discarded
        return {"summary": v}

    @field_validator("competitors", mode="after")
    @classmethod
    def competitors_are_objects(cls, v: List[Any]) -> List[Dict[str, Any]]:
        return [c if isinstance(c, dict) else {"name": str(c)} for c in v]

    def to_wire(self) -> Dict[str, Any]:
        payload = super().to_wire()
        if payload.get("analysis") is None:
            payload.pop("analysis", None)
        return payload


def new_request_id() -> str:
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
