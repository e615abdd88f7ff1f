"""
Chat-completion call against the OpenRouter (OpenAI-compatible) endpoint.
Shared by query translation and summarization; callers map exceptions to result sources.
"""
import logging
from typing import Any, Optional

import httpx

from tools.errors import UpstreamApiError
from tools.security import ensure_allowed_url

logger = logging.getLogger(__name__)

COMPLETION_SERVICE = "OpenRouter"


def extract_content(payload: Any) -> str:
    """choices[0].message.content, or "" when the response has another shape."""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else ""


async def request_completion(
    client: httpx.AsyncClient,
    *,
    url: str,
    api_key: str,
    model: str,
    messages: list[dict[str, str]],
    max_tokens: int,
    temperature: float,
    timeout: float,
    top_p: Optional[float] = None,
    response_format: Optional[dict[str, Any]] = None,
    title: str = "ChatH4O",
) -> str:
    """
    POST a completion request and return the first message content ("" if absent).

    Raises:
        UrlValidationError: url is not allow-listed (raised before any I/O)
        UpstreamApiError: non-2xx response
        httpx.TimeoutException: the call exceeded `timeout`
        httpx.HTTPError / ValueError: transport failure or non-JSON body
    """
    ensure_allowed_url(url)

    body: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    if top_p is not None:
        body["top_p"] = top_p
    if response_format is not None:
        body["response_format"] = response_format

    response = await client.post(
        url,
        json=body,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "X-Title": title,
        },
        timeout=timeout,
    )
    if not response.is_success:
        logger.warning("completion_api_error: status=%s", response.status_code)
        raise UpstreamApiError(COMPLETION_SERVICE, response.status_code)

    return extract_content(response.json())
