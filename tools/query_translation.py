"""
Translate a zero-result Korean search query into English for one retry.
Decoding the model reply is two-stage: strict JSON {"query": ...}, then quoted-text
extraction accepted only for technical queries. If neither yields a new query, a
keyword-only query is built from known technical terms. Never raises on failure
(cancellation excepted): returns None and the caller keeps its no-results outcome.
"""
import json
import logging
import re
from typing import Optional

import httpx

from tools.completion import request_completion
from tools.context import ToolContext
from tools.errors import ToolError, ValidationError
from tools.language import extract_technical_terms, mentions_technical_term
from tools.security import sanitize_input

logger = logging.getLogger(__name__)

TRANSLATION_SYSTEM_PROMPT = (
    "You are a translator. Translate Korean text to English for search engines. "
    'Keep technical terms like "RxJS", "Angular", etc. unchanged.'
)
TRANSLATION_RESPONSE_FORMAT = {
    "type": "json_object",
    "schema": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The translated search query in English",
            }
        },
        "required": ["query"],
        "additionalProperties": False,
    },
}

_QUOTED = re.compile(r'"([^"]+)"')


def decode_structured_query(content: str) -> Optional[str]:
    """Stage 1: the reply is the requested JSON object."""
    try:
        parsed = json.loads(content)
    except (TypeError, ValueError):
        return None
    if not isinstance(parsed, dict):
        return None
    query = parsed.get("query")
    if not isinstance(query, str) or not query.strip():
        return None
    return query.strip()


def decode_quoted_query(content: str) -> Optional[str]:
    """Stage 2: first quoted span, kept only if it looks like a technical query."""
    match = _QUOTED.search(content or "")
    if not match:
        return None
    extracted = match.group(1).strip()
    if not extracted or not mentions_technical_term(extracted):
        return None
    return extracted


def decode_translation(content: str) -> Optional[str]:
    structured = decode_structured_query(content)
    if structured is not None:
        return structured
    logger.warning("translation_parse_failed: trying quoted-text extraction")
    return decode_quoted_query(content)


def keyword_query(query: str) -> Optional[str]:
    """Last resort: English query made of the technical terms already in the text."""
    terms = extract_technical_terms(query)
    if not terms:
        return None
    return f"{' '.join(terms)} documentation latest"


async def _translate_with_model(query: str, client: httpx.AsyncClient, ctx: ToolContext) -> Optional[str]:
    settings = ctx.settings
    content = await request_completion(
        client,
        url=settings.completion_api_url,
        api_key=settings.openrouter_api_key,
        model=settings.translation_model,
        messages=[
            {"role": "system", "content": TRANSLATION_SYSTEM_PROMPT},
            {"role": "user", "content": query},
        ],
        max_tokens=100,
        temperature=0.3,
        timeout=settings.translation_timeout,
        response_format=TRANSLATION_RESPONSE_FORMAT,
        title=f"{settings.app_title} Translation Service",
    )
    if not content:
        return None
    candidate = decode_translation(content)
    if candidate is None:
        return None
    try:
        return sanitize_input(candidate)
    except ValidationError:
        logger.warning("translation_rejected: failed sanitization")
        return None


async def translate_search_query(query: str, client: httpx.AsyncClient, ctx: ToolContext) -> Optional[str]:
    """English query distinct from `query`, or None when no usable translation exists."""
    translated: Optional[str] = None

    if ctx.settings.openrouter_api_key:
        try:
            translated = await _translate_with_model(query, client, ctx)
        except httpx.TimeoutException:
            logger.warning("translation_timeout")
        except (ToolError, httpx.HTTPError, ValueError) as e:
            logger.warning("translation_failed: %s", type(e).__name__)
        else:
            if translated:
                logger.info("translation_completed")
    else:
        logger.info("translation_skipped: OPENROUTER_API_KEY not configured")

    if not translated or translated == query:
        translated = keyword_query(query)

    if not translated or translated == query:
        return None
    return translated
