"""
FastAPI backend: tool schemas, tool-call execution, health checks.
Logs are event-style (request_id, tool, client, duration) and pass through secret masking.
"""
import asyncio
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.config import get_settings
from tools.context import ToolContext
from tools.rate_limit import DEFAULT_CLIENT_ID, get_rate_limiter
from tools.registry import execute_tool, tool_definitions
from tools.security import SecretMaskingFilter, short_id

log = logging.getLogger(__name__)
logging.basicConfig(level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
for _handler in logging.getLogger().handlers:
    _handler.addFilter(SecretMaskingFilter())

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

DISCONNECT_POLL_SEC = 0.5
CLIENT_CLOSED_REQUEST = 499


@asynccontextmanager
async def lifespan(app: FastAPI):
    """One pooled HTTP client for all outbound tool calls."""
    app.state.http_client = httpx.AsyncClient()
    yield
    await app.state.http_client.aclose()


app = FastAPI(title="ChatH4O Tools", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


class ToolCallRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    arguments: dict[str, Any] = Field(default_factory=dict, description="JSON arguments issued by the model")


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    response = await call_next(request)
    response.headers["x-request-id"] = rid
    return response


def _client_id(request: Request) -> str:
    """Rate-limit identity: the peer address. Caller-supplied headers are only logged."""
    if request.client and request.client.host:
        return request.client.host
    return DEFAULT_CLIENT_ID


async def _cancel_on_disconnect(request: Request, coro):
    """Run coro; cancel it if the client goes away. Returns (finished, result)."""
    task = asyncio.ensure_future(coro)
    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SEC)
        if done:
            return True, task.result()
        if await request.is_disconnected():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            return False, None


@app.get("/health")
async def health():
    """Basic health check."""
    return {"status": "ok"}


@app.get("/tools")
async def list_tools():
    """OpenAI function-calling schemas for the model."""
    return {"tools": tool_definitions()}


@app.post("/tools/call")
async def call_tool(req: ToolCallRequest, request: Request):
    """Execute one model-issued tool call and return its ToolResult envelope."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    client_id = _client_id(request)
    label = (request.headers.get("x-client-id") or "").strip()[:64]
    http_client = getattr(request.app.state, "http_client", None)
    ctx = ToolContext(
        settings=get_settings(),
        client_id=client_id,
        rate_limiter=get_rate_limiter(),
        http_client=http_client,
    )

    start = time.perf_counter()
    log.info(
        "tool_call_start: request_id=%s tool=%s client=%s label=%s",
        request_id,
        req.name[:50],
        short_id(client_id),
        short_id(label),
    )
    finished, result = await _cancel_on_disconnect(request, execute_tool(req.name, req.arguments, ctx))
    duration = time.perf_counter() - start

    if not finished:
        log.info("tool_call_cancelled: request_id=%s duration_sec=%.3f", request_id, duration)
        return JSONResponse(status_code=CLIENT_CLOSED_REQUEST, content={"success": False, "error": "Request cancelled"})

    log.info("tool_call_done: request_id=%s success=%s duration_sec=%.3f", request_id, result.success, duration)
    return asdict(result)


def main():
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
