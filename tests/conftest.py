"""Pytest config: PYTHONPATH, env, and helpers for driving tools against a mock HTTP transport."""
import os
import sys
from pathlib import Path

import httpx
import pytest

root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.config import Settings  # noqa: E402
from tools.context import ToolContext  # noqa: E402
from tools.rate_limit import InMemoryRateLimitStore, RateLimiter  # noqa: E402

SEARCH_HOST = "api.search.brave.com"
COMPLETION_HOST = "openrouter.ai"
DEEPL_HOST = "api-free.deepl.com"


def make_settings(**overrides) -> Settings:
    values = {
        "brave_search_api_key": "brave-test-key",
        "openrouter_api_key": "sk-or-v1-test",
        "deepl_api_key": "deepl-test-key",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def make_ctx():
    """Build a ToolContext with a fresh limiter and a client backed by `handler`."""

    def _make(handler=None, client_id="tester", **settings_overrides):
        transport = RecordingTransport(handler or (lambda request: httpx.Response(500)))
        ctx = ToolContext(
            settings=make_settings(**settings_overrides),
            client_id=client_id,
            rate_limiter=RateLimiter(InMemoryRateLimitStore()),
            http_client=httpx.AsyncClient(transport=transport),
        )
        return ctx, transport

    return _make


def brave_payload(*hits) -> dict:
    return {"web": {"results": list(hits)}}


def hit(title="Title", url="https://example.com/a", description="Snippet", **extra) -> dict:
    item = {"title": title, "url": url, "description": description}
    item.update(extra)
    return item


def completion_payload(content) -> dict:
    return {"choices": [{"message": {"content": content}}]}
