"""
Prompt templates for the research pipeline.

Holds the competitor extraction and CSV segmentation instructions plus the
stage selector, which picks one of four research prompts for a run. The
stage never changes within a run and an unknown stage is rejected rather
than mapped onto a default.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Union

from scout.core.exceptions import ValidationError
from scout.core.models import Stage

ANALYST_SYSTEM_PROMPT = (
    "You are an expert market research analyst specializing in ICP discovery and "
    "competitive intelligence. Provide data-backed, actionable insights. Always "
    "structure your response as valid JSON."
)

RESULTS_SCHEMA = """{
  "competitors": [/* competitor profiles: name, website, description, pricing, strengths, weaknesses */],
  "icpProfiles": [/* 3 ICP segments: name, priority, firmographics, decisionMaker, painPoints, buyingTriggers, whereToFind */],
  "marketData": {/* tam, sam, som (value + source/calculation), growthRate, trends */},
  "swotAnalyses": [/* competitor, strengths, weaknesses, opportunities, threats */],
  "portersFiveForces": {/* competitiveRivalry, supplierPower, buyerPower, threatOfNewEntrants, threatOfSubstitutes: rating + analysis */},
  "positioning": {/* recommendation, rationale */},
  "pricing": {/* recommended, rationale, competitiveRange */},
  "gtmChannels": [/* channel, priority, rationale */],
  "actionPlan": [/* phase, timeframe, actions */]
}"""


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def competitor_extraction_prompt(url: str, html: str) -> str:
    return f"""Extract key information from this competitor's website HTML.

URL: {url}

HTML Content (truncated):
{html}

Extract and return a JSON object with:
{{
  "description": "Brief 1-2 sentence company description",
  "pricing": [
    {{
      "tier": "Tier name (e.g., Free, Pro, Enterprise)",
      "price": "Price (e.g., $0/mo, $49/mo, Contact sales)",
      "features": ["Key feature 1", "Key feature 2"]
    }}
  ],
  "features": ["Core feature 1", "Core feature 2"],
  "targetMarket": "Who they target (e.g., 'SMBs', 'Enterprise teams', 'Developers')",
  "positioning": "How they position themselves (1-2 sentences)",
  "testimonials": [
    {{
      "quote": "Testimonial text",
      "company": "Company name (if available)",
      "role": "Person's role (if available)"
    }}
  ]
}}

IMPORTANT:
- Only extract data that is clearly visible in the HTML
- If pricing is not found, return empty array
- If testimonials not found, return empty array
- Keep features concise (max 10)
- Base everything on actual content, don't make assumptions
- Return valid JSON only, no markdown formatting"""


def csv_segmentation_prompt(rows: List[Dict[str, Any]], total_records: int) -> str:
    note = f"\n... (showing first {len(rows)} records)" if total_records > len(rows) else ""
    return f"""Analyze this customer data and identify segments with distinct characteristics.

Customer Data ({total_records} records):
{_dump(rows)}{note}

Perform comprehensive segmentation analysis:

1. Identify 3-5 customer segments based on:
   - Role/Title patterns
   - Company size/industry patterns
   - Deal value patterns
   - Usage/behavior patterns (if data available)
   - Churn patterns (if status/churn data available)

2. For each segment, calculate/estimate:
   - Number of customers
   - Average deal size
   - Conversion rate (if data supports it)
   - Estimated LTV
   - Churn rate (if status data available)
   - Key traits that define this segment

3. Provide insights:
   - Which segment is most valuable?
   - Which segment should be avoided (high churn, low value)?
   - What patterns predict success?

Return a JSON object:
{{
  "segments": [
    {{
      "name": "Segment name (e.g., 'Mid-Market SaaS CTOs')",
      "count": 0,
      "avgDealSize": 0,
      "conversionRate": "XX%",
      "ltv": 0,
      "churnRate": "XX%",
      "traits": ["Trait 1", "Trait 2"]
    }}
  ],
  "insights": ["Key insight 1", "Key insight 2"],
  "recommendations": ["Actionable recommendation 1", "Actionable recommendation 2"],
  "winningProfile": "Description of the highest-value customer profile",
  "segmentToAvoid": "Description of segment to avoid (if applicable)"
}}

IMPORTANT:
- Base analysis on actual data patterns
- If certain metrics aren't available in the data, make reasonable estimates based on patterns
- Be specific and quantitative
- Provide actionable insights
- Return valid JSON only"""


# --------------------------------------------------------------------- #
# Stage selection
# --------------------------------------------------------------------- #


@dataclass(frozen=True)
class StageContext:
    """Inputs a stage prompt may draw on."""

    product: str
    target_market: Optional[str] = None
    competitor_data: tuple = ()
    customer_patterns: Optional[str] = None
    csv_analysis: Optional[Any] = None


@dataclass(frozen=True)
class StagePrompt:
    stage: Stage
    system: str
    prompt: str
    uses_csv_analysis: bool


def _header(ctx: StageContext) -> str:
    return f"Product: {ctx.product}\nTarget Market: {ctx.target_market or 'Not specified'}"


def _competitor_block(ctx: StageContext) -> str:
    if not ctx.competitor_data:
        return ""
    return f"\nCompetitor Data:\n{_dump(list(ctx.competitor_data))}"


def _csv_block(ctx: StageContext, label: str) -> str:
    if ctx.csv_analysis is None:
        return ""
    return f"\n{label}:\n{_dump(ctx.csv_analysis)}"


def _output_block(extra: str = "") -> str:
    return f"\nReturn structured JSON{extra} following this format:\n{RESULTS_SCHEMA}"


def _pre_launch(ctx: StageContext) -> str:
    return f"""Conduct comprehensive ICP discovery research for a PRE-LAUNCH startup.

{_header(ctx)}{_competitor_block(ctx)}

As a market research analyst, provide:

1. **Competitor Analysis** (based on scraped data if available):
   - For each competitor: positioning, strengths, weaknesses, pricing strategy
   - Market gaps and opportunities
   - Competitive differentiation recommendations

2. **ICP Hypothesis** (3 segments, prioritized):
   Based on competitor customers and market signals, identify:
   - Segment name and description
   - Firmographics (company size, industry, revenue)
   - Decision maker profile (role, seniority, team size)
   - Pain points (specific, evidence-based)
   - Buying triggers
   - Where to find them (communities, channels, search terms)
   - Why this segment will buy (rationale)
   - Evidence/reasoning for recommendation

3. **Market Analysis**:
   - TAM/SAM/SOM estimates (with sources/methodology)
   - Market growth trends
   - Key dynamics affecting the market

4. **Strategic Frameworks**:
   - SWOT analysis for top 3 competitors
   - Porter's Five Forces analysis
   - Positioning recommendation

5. **GTM Strategy**:
   - Recommended positioning statement
   - Pricing strategy (based on competitor analysis)
   - Top 3 GTM channels with rationale
   - First 90-day action plan
{_output_block()}"""


def _early_stage(ctx: StageContext) -> str:
    return f"""Conduct ICP validation research for an EARLY-STAGE startup (1-20 customers).

{_header(ctx)}
Early Customer Patterns: {ctx.customer_patterns or 'Not provided'}{_competitor_block(ctx)}

As a market research analyst, provide:

1. **Customer Pattern Analysis**:
   - Validate patterns from early customers
   - Identify converging vs non-converging profiles
   - Recommend which segments to double down on

2. **Validated ICP Segments** (3 segments):
   - Primary: Based on best-converting customers
   - Secondary: Adjacent opportunity
   - Tertiary: Future potential
   For each: firmographics, decision maker, pain points, conversion insights

3. **Competitor Positioning**:
   - How competitors position against these ICPs
   - Gaps in their offering
   - Your differentiation opportunity

4. **Optimization Recommendations**:
   - Which customer type to focus on (data-backed)
   - Which to avoid (with reasoning)
   - Channel recommendations
   - Next 20 customers: specific targeting criteria
{_output_block()}"""


def _post_revenue(ctx: StageContext) -> str:
    icp_source = (
        "- Use the CSV analysis to identify winning segments"
        if ctx.csv_analysis is not None
        else "- Analyze described customer patterns"
    )
    return f"""Conduct quantitative ICP analysis for a POST-REVENUE startup (20-100 customers).

{_header(ctx)}{_csv_block(ctx, 'Customer Data Analysis')}{_competitor_block(ctx)}

As a market research analyst, provide:

1. **Data-Driven ICP Analysis**:
   {icp_source}
   - Segment by conversion rate, LTV, churn
   - Identify highest-value customers
   - Pinpoint segments to avoid

2. **Competitive Intelligence**:
   - Deep SWOT for each competitor
   - Your positioning vs competitors for each segment
   - Pricing optimization based on segment value

3. **Scaling Strategy**:
   - Which ICP to scale (with ROI projections)
   - Channel allocation by segment
   - Expansion opportunities
   - Next 100 customers: precise targeting

4. **Optimization Roadmap**:
   - Quick wins (30 days)
   - Medium-term improvements (90 days)
   - Long-term strategy (12 months)
{_output_block(" with quantitative metrics included")}"""


def _scale_up(ctx: StageContext) -> str:
    return f"""Conduct advanced segmentation research for a SCALE-UP (100+ customers).

{_header(ctx)}{_csv_block(ctx, 'Customer Segmentation Data')}{_competitor_block(ctx)}

As a market research analyst, provide:

1. **Advanced Segmentation**:
   - Cohort analysis of customer segments
   - LTV/CAC by segment
   - Identify expansion opportunities within existing segments
   - New adjacent ICPs for market expansion

2. **Competitive Landscape**:
   - Market share estimates
   - Competitive positioning by segment
   - Threats and opportunities
   - Moat-building recommendations

3. **Growth Strategy**:
   - Current segment optimization
   - New segment expansion plan
   - Enterprise readiness assessment
   - International expansion considerations (if applicable)

4. **Strategic Roadmap**:
   - Immediate optimizations (30 days)
   - Growth initiatives (6 months)
   - Strategic positioning (12-24 months)
{_output_block(" with segment metrics, market sizing, and strategic recommendations")}"""


STAGE_BUILDERS: Dict[Stage, Callable[[StageContext], str]] = {
    Stage.PRE_LAUNCH: _pre_launch,
    Stage.EARLY_STAGE: _early_stage,
    Stage.POST_REVENUE: _post_revenue,
    Stage.SCALE_UP: _scale_up,
}


def resolve_stage(value: Union[Stage, str]) -> Stage:
    """Map a raw stage value onto the enum, rejecting anything else."""
    if isinstance(value, Stage):
        return value
    try:
        return Stage(value)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in Stage)
        raise ValidationError(
            f"Unknown stage {value!r}; expected one of: {allowed}",
            details={"stage": value},
        ) from exc


def select_stage_prompt(stage: Union[Stage, str], ctx: StageContext) -> StagePrompt:
    """
    Build the research prompt for ``stage``.

    CSV analysis is only embedded for post-revenue and scale-up runs; other
    stages ignore it even when supplied.
    """
    resolved = resolve_stage(stage)
    uses_csv = resolved.accepts_csv_analysis and ctx.csv_analysis is not None
    if not uses_csv and ctx.csv_analysis is not None:
        ctx = replace(ctx, csv_analysis=None)
    return StagePrompt(
        stage=resolved,
        system=ANALYST_SYSTEM_PROMPT,
        prompt=STAGE_BUILDERS[resolved](ctx),
        uses_csv_analysis=uses_csv,
    )
