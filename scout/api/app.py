"""FastAPI application wiring for the Scout research service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from scout import __version__
from scout.core.config import Settings, get_settings
from scout.core.exceptions import ExtractionError, LLMServiceError, ScoutError
from scout.core.logging import clear_correlation_id, set_correlation_id
from scout.core.models import CsvAnalysisRequest, ScrapeRequest, StageRequest
from scout.services.research_service import ResearchService

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def error_body(error: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error, "message": message}
    if details:
        body["details"] = details
    return body


def describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Request body is invalid"


def build_app(
    settings: Optional[Settings] = None,
    service: Optional[ResearchService] = None,
) -> FastAPI:
    """Create a configured FastAPI instance."""
    settings = settings or get_settings()
    service = service or ResearchService(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await service.aclose()

    app = FastAPI(title="Scout Research Service", version=__version__, lifespan=lifespan)

    def get_service() -> ResearchService:
        return service

    # ------------------------------------------------------------------ #
    # Error handling: every response is JSON
    # ------------------------------------------------------------------ #

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        message = describe_validation_errors(exc)
        logger.info("request_rejected", reason=message)
        return JSONResponse(status_code=400, content=error_body("Invalid request", message))

    @app.exception_handler(ScoutError)
    async def handle_scout_error(_: Request, exc: ScoutError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", error=exc.error_label, message=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.error_label, exc.message, exc.details or None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), exc_info=exc)
        # Served outside the correlation middleware
        correlation_id = getattr(request.state, "correlation_id", None)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "Internal server error",
                str(exc) or "An unexpected error occurred while processing your request",
            ),
            headers={CORRELATION_HEADER: correlation_id} if correlation_id else None,
        )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    # ------------------------------------------------------------------ #
    # Routes
    # ------------------------------------------------------------------ #

    @app.post("/scrape-competitor")
    async def scrape_competitor(
        body: ScrapeRequest,
        svc: ResearchService = Depends(get_service),
    ) -> Dict[str, Any]:
        result = await svc.scrape_competitor(body.url)
        return result.to_wire()

    @app.post("/research")
    async def research(
        body: StageRequest,
        svc: ResearchService = Depends(get_service),
    ) -> Dict[str, Any]:
        results = await svc.research(body)
        return {"success": True, "results": results.to_wire()}

    @app.post("/analyze-csv")
    async def analyze_csv(
        body: CsvAnalysisRequest,
        svc: ResearchService = Depends(get_service),
    ):
        try:
            envelope = await svc.analyze_csv(body.csv_data)
        except (ExtractionError, LLMServiceError) as exc:
            return JSONResponse(status_code=500, content=error_body("Analysis failed", exc.message))
        return envelope.to_wire()

    return app


app = build_app()
