"""Tests for the bounded content fetcher."""

import asyncio

import httpx

from scout.core.config import Settings
from scout.core.models import FetchFailure, FetchSuccess
from scout.data.fetcher import ContentFetcher


def _fetch(settings: Settings, handler, url: str = "https://acme.com/"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = ContentFetcher(settings, client=client)

    async def run():
        try:
            return await fetcher.fetch(url)
        finally:
            await client.aclose()

    return asyncio.run(run())


class TestContentFetcher:
    def test_success_returns_body(self, settings):
        seen = {}

        def handler(request):
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(200, text="<html>hello</html>")

        outcome = _fetch(settings, handler)

        assert isinstance(outcome, FetchSuccess)
        assert outcome.ok
        assert outcome.content == "<html>hello</html>"
        assert not outcome.truncated
        assert seen["ua"] == settings.user_agent

    def test_content_is_capped(self, settings):
        outcome = _fetch(settings, lambda request: httpx.Response(200, text="x" * 60_000))

        assert isinstance(outcome, FetchSuccess)
        assert len(outcome.content) == 50_000
        assert outcome.truncated

    def test_non_success_status_is_failure(self, settings):
        outcome = _fetch(settings, lambda request: httpx.Response(404))

        assert isinstance(outcome, FetchFailure)
        assert not outcome.ok
        assert outcome.reason == "HTTP 404: Not Found"

    def test_follows_redirects(self, settings):
        def handler(request):
            if request.url.path == "/":
                return httpx.Response(301, headers={"location": "https://acme.com/home"})
            return httpx.Response(200, text="home")

        outcome = _fetch(settings, handler)

        assert isinstance(outcome, FetchSuccess)
        assert outcome.content == "home"

    def test_transport_timeout_is_failure(self, settings):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        outcome = _fetch(settings, handler)

        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == "timeout"

    def test_wall_clock_timeout_is_failure(self):
        settings = Settings(_env_file=None, openai_api_key="k", fetch_timeout=0.05)

        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, text="too late")

        outcome = _fetch(settings, handler)

        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == "timeout"

    def test_connection_error_is_failure(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        outcome = _fetch(settings, handler)

        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == "connection refused"
