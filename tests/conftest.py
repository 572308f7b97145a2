"""Configure pytest fixtures and environment for Scout tests."""

import httpx
import pytest
from dotenv import load_dotenv

from doubles import DummyLLM, build_site_handler
from scout.core.config import Settings, reset_settings


def pytest_sessionstart(session):
    """Load environment variables from a local .env file, if any."""
    load_dotenv()


@pytest.fixture(autouse=True)
def fresh_settings():
    """Never let one test see settings cached by another."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> Settings:
    """Settings with a dummy credential and no .env influence."""
    return Settings(_env_file=None, openai_api_key="test-key")


@pytest.fixture
def keyless_settings() -> Settings:
    return Settings(_env_file=None, openai_api_key=None)


@pytest.fixture
def site_pages():
    """Canned competitor pages keyed by host."""
    return {
        "acme.com": "<html><body><h1>Acme</h1><p>Pro $49/mo</p></body></html>",
        "globex.io": "<html><body><h1>Globex</h1><p>Enterprise: contact sales</p></body></html>",
        "initech.co": "<html><body><h1>Initech</h1></body></html>",
    }


@pytest.fixture
def http_client(site_pages):
    """Async client that serves ``site_pages`` and 404s everything else."""
    return httpx.AsyncClient(transport=httpx.MockTransport(build_site_handler(site_pages)))


@pytest.fixture
def dummy_llm() -> DummyLLM:
    return DummyLLM()
