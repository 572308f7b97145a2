"""Test doubles shared across the Scout test suite."""

from __future__ import annotations

import json
import re
from typing import Dict, List, Optional, Union

import httpx

Reply = Union[str, Exception]

_URL_LINE = re.compile(r"^URL: (\S+)$", re.MULTILINE)


def competitor_json(name: str) -> str:
    return json.dumps(
        {
            "description": f"{name} builds analytics software.",
            "pricing": [{"tier": "Pro", "price": "$49/mo", "features": ["Dashboards"]}],
            "features": ["Dashboards", "Alerts"],
            "targetMarket": "SMBs",
            "positioning": f"{name} is the simple choice.",
            "testimonials": [],
        }
    )


SYNTHESIS_JSON = json.dumps(
    {
        "competitors": [{"name": "Acme", "website": "https://acme.com/"}],
        "icpProfiles": [{"name": "Seed-stage SaaS founders", "priority": 1}],
        "marketData": {"tam": {"value": "$4B"}},
        "swotAnalyses": [],
        "portersFiveForces": {"competitiveRivalry": {"rating": "high"}},
        "positioning": {"recommendation": "Lead with speed"},
        "pricing": {"recommended": "$39/mo"},
        "gtmChannels": [{"channel": "Communities", "priority": 1}],
        "actionPlan": [{"phase": "Validate", "timeframe": "30 days"}],
    }
)

CSV_ANALYSIS_JSON = json.dumps(
    {
        "segments": [
            {
                "name": "Mid-Market CTOs",
                "count": 42,
                "avgDealSize": 12000,
                "conversionRate": "18%",
                "ltv": 36000,
                "churnRate": "4%",
                "traits": ["Technical buyer"],
            }
        ],
        "insights": ["CTOs convert best"],
        "recommendations": ["Target 50-200 employee SaaS"],
        "winningProfile": "Technical buyers at mid-market SaaS",
        "segmentToAvoid": None,
    }
)


class DummyLLM:
    """
    Test double for the LLM client.

    Routes on the prompt: competitor extraction prompts are answered per
    URL, CSV prompts with ``csv_reply`` and everything else with
    ``synthesis_reply``. An ``Exception`` reply is raised instead.
    """

    def __init__(
        self,
        competitor_replies: Optional[Dict[str, Reply]] = None,
        synthesis_reply: Reply = SYNTHESIS_JSON,
        csv_reply: Reply = CSV_ANALYSIS_JSON,
    ) -> None:
        self.competitor_replies = competitor_replies or {}
        self.synthesis_reply = synthesis_reply
        self.csv_reply = csv_reply
        self.calls: List[Dict[str, object]] = []

    async def complete(self, prompt, *, system=None, max_tokens=None, temperature=None) -> str:
        self.calls.append(
            {"prompt": prompt, "system": system, "max_tokens": max_tokens, "temperature": temperature}
        )
        reply = self._route(prompt)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def _route(self, prompt: str) -> Reply:
        if prompt.startswith("Extract key information"):
            match = _URL_LINE.search(prompt)
            url = match.group(1) if match else ""
            if url in self.competitor_replies:
                return self.competitor_replies[url]
            return competitor_json(httpx.URL(url).host or "unknown")
        if prompt.startswith("Analyze this customer data"):
            return self.csv_reply
        return self.synthesis_reply

    def prompts_starting_with(self, prefix: str) -> List[str]:
        return [c["prompt"] for c in self.calls if str(c["prompt"]).startswith(prefix)]


def build_site_handler(pages: Dict[str, str]):
    """MockTransport handler serving ``pages`` by host; unknown hosts get a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = pages.get(request.url.host)
        if body is None:
            return httpx.Response(404, text="not here")
        return httpx.Response(200, text=body, headers={"content-type": "text/html"})

    return handler


def customer_csv(rows: int) -> str:
    lines = ["name,title,company_size,deal_value,status"]
    for i in range(rows):
        status = "churned" if i % 7 == 0 else "active"
        lines.append(f"Customer {i},CTO,{50 + i},{1000 + i * 10},{status}")
    return "\n".join(lines) + "\n"
