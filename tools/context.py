"""Per-invocation dependencies handed to tools: settings, caller identity, limiter, HTTP client."""
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

import httpx

from app.config import Settings, get_settings
from tools.rate_limit import DEFAULT_CLIENT_ID, RateLimiter, get_rate_limiter


@dataclass
class ToolContext:
    settings: Settings = field(default_factory=get_settings)
    client_id: str = DEFAULT_CLIENT_ID
    rate_limiter: RateLimiter = field(default_factory=get_rate_limiter)
    # Shared client owned by the caller (e.g. the FastAPI app); None opens one per call
    http_client: Optional[httpx.AsyncClient] = None

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.http_client is not None:
            yield self.http_client
            return
        async with httpx.AsyncClient() as client:
            yield client
