"""Sanitise and parse LLM replies that should contain a single JSON object."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from scout.core.exceptions import ExtractionError

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\r?\n?", re.IGNORECASE)


def strip_code_fences(text: Optional[str]) -> str:
    """Remove markdown code fences (```` ``` ```` and ```` ```json ````) and outer whitespace."""
    if not text:
        return ""
    return _FENCE_RE.sub("", text).strip()


def parse_llm_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse an LLM reply into a JSON object.

    Only fences are stripped; prose around the object is not salvaged.

    Raises:
        ExtractionError: carrying the first 500 characters of the raw reply.
    """
    candidate = strip_code_fences(text)
    if not candidate:
        raise ExtractionError("Empty response from model", raw_response=text)

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ExtractionError(
            f"Model response is not valid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            raw_response=text,
        ) from exc

    if not isinstance(payload, dict):
        raise ExtractionError(
            f"Expected a JSON object, got {type(payload).__name__}",
            raw_response=text,
        )
    return payload
