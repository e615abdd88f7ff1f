"""
Web search tool using the Brave Search API directly over httpx.
Korean queries that come back empty are translated to English and retried once.
"""
import logging
import time
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote, urlsplit

import httpx
from pydantic import BaseModel, Field

from tools.base import (
    HIT_SOURCE,
    HIT_SOURCE_TRANSLATED,
    SOURCE_SEARCH,
    SOURCE_SEARCH_TRANSLATED,
    ErrorSource,
    SearchOutcome,
    SearchResult,
    ToolResult,
    query_preview,
)
from tools.context import ToolContext
from tools.errors import ToolError, UpstreamApiError, UrlValidationError, ValidationError
from tools.language import is_likely_korean, select_freshness
from tools.query_translation import translate_search_query
from tools.security import (
    MAX_QUERY_LENGTH,
    MAX_RESULTS_LIMIT,
    ensure_allowed_url,
    sanitize_input,
    sanitize_output,
    short_id,
)

logger = logging.getLogger(__name__)

SEARCH_SERVICE = "Brave Search"
DEFAULT_MAX_RESULTS = 5
TRANSLATED_SUFFIX = " (번역됨)"

MSG_INVALID_QUERY = "검색어가 유효하지 않습니다. 특수 문자를 제거하고 다시 시도해주세요."
MSG_RATE_LIMITED = "요청 한도를 초과했습니다. 잠시 후 다시 시도해주세요."
MSG_NOT_CONFIGURED = "검색 서비스를 일시적으로 사용할 수 없습니다. 잠시 후 다시 시도해주세요."
MSG_URL_REJECTED = "검색 서비스 오류가 발생했습니다. 관리자에게 문의해주세요."
MSG_AUTH_FAILED = "검색 서비스 인증에 실패했습니다."
MSG_UNAVAILABLE = "검색 서비스를 일시적으로 사용할 수 없습니다."
MSG_NO_RESULTS = "검색 결과를 찾을 수 없습니다. 다른 검색어를 시도해보시거나 더 구체적인 키워드를 사용해보세요."
MSG_TIMEOUT = "검색 요청이 시간 초과되었습니다."
MSG_ERROR = "검색 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."

# RFC 3986 reserved set plus "%"; everything else in a hit URL is percent-encoded
_URL_SAFE_CHARS = ":/?#[]@!$&()*+,;=%~"


class WebSearchInput(BaseModel):
    """Input for web search. Query is the user's search question."""
    query: str = Field(
        min_length=1,
        max_length=MAX_QUERY_LENGTH,
        description=(
            "Search query in any language including Korean. Include specific dates, years, or time "
            'periods when relevant (e.g., "마비노기 모바일 2024년 소식" or "latest updates").'
        ),
    )
    max_results: int = Field(
        default=DEFAULT_MAX_RESULTS,
        ge=1,
        le=MAX_RESULTS_LIMIT,
        description="Maximum number of search results to return (default: 5, maximum: 10)",
    )


def clamp_max_results(value: Any) -> int:
    """Coerce the model-supplied count into 1..MAX_RESULTS_LIMIT; junk and 0 mean the default."""
    try:
        count = int(value) if value is not None else DEFAULT_MAX_RESULTS
    except (TypeError, ValueError):
        count = DEFAULT_MAX_RESULTS
    if not count:
        count = DEFAULT_MAX_RESULTS
    return min(max(1, count), MAX_RESULTS_LIMIT)


def _hit_hostname(url: Any) -> Optional[str]:
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not hostname:
        return None
    return hostname


def parse_hit(item: Any, hit_source: str = HIT_SOURCE) -> Optional[SearchResult]:
    """Convert one raw Brave hit. Hits without a parseable http(s) URL are dropped (None)."""
    if not isinstance(item, dict):
        return None
    domain = _hit_hostname(item.get("url"))
    if domain is None:
        logger.warning("search_hit_dropped: invalid url")
        return None

    score = item.get("score")
    relevance = float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) and score else None
    age = item.get("age")

    return SearchResult(
        title=sanitize_output(item.get("title") or "No title"),
        url=quote(item["url"].strip(), safe=_URL_SAFE_CHARS),
        snippet=sanitize_output(item.get("description") or "No description available"),
        published=age if isinstance(age, str) and age else None,
        source=hit_source,
        relevance_score=relevance,
        domain=domain,
    )


def parse_hits(payload: Any, limit: int, hit_source: str = HIT_SOURCE) -> list[SearchResult]:
    """Parse {"web": {"results": [...]}}, keeping at most `limit` raw hits before filtering."""
    web = payload.get("web") if isinstance(payload, dict) else None
    raw = web.get("results") if isinstance(web, dict) else None
    if not isinstance(raw, list):
        return []
    results = []
    for item in raw[:limit]:
        hit = parse_hit(item, hit_source)
        if hit is not None:
            results.append(hit)
    return results


def format_search_display(outcome: SearchOutcome) -> str:
    lines = []
    for i, result in enumerate(outcome.results, 1):
        lines.append(f"[{i}] {result.title}\n{result.url}\n{result.snippet}")
    return "\n\n".join(lines)


async def _query_index(
    client: httpx.AsyncClient,
    ctx: ToolContext,
    api_key: str,
    query: str,
    count: int,
    freshness: Optional[str],
) -> Any:
    """One GET against the search index. The host is allow-list checked before sending."""
    settings = ctx.settings
    url = ensure_allowed_url(settings.search_api_url)
    params = {
        "q": query.strip(),
        "count": str(count),
        "search_lang": "en",
        "ui_lang": "en-US",
        "safesearch": "strict",
        "textDecorations": "false",
    }
    if freshness:
        params["freshness"] = freshness

    response = await client.get(
        url,
        params=params,
        headers={
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": api_key,
            "User-Agent": settings.user_agent,
        },
        timeout=settings.request_timeout,
    )
    if not response.is_success:
        logger.warning("search_api_error: status=%s", response.status_code)
        raise UpstreamApiError(SEARCH_SERVICE, response.status_code)
    return response.json()


async def _retry_in_english(
    client: httpx.AsyncClient,
    ctx: ToolContext,
    api_key: str,
    query: str,
    count: int,
    freshness: Optional[str],
) -> list[SearchResult]:
    """Translation-retry sub-path. Any failure here yields [] and leaves the primary outcome intact."""
    logger.info("search_retry_with_translation")
    english_query = await translate_search_query(query, client, ctx)
    if english_query is None:
        logger.info("search_retry_skipped: no translation available")
        return []
    try:
        payload = await _query_index(client, ctx, api_key, english_query, count, freshness)
    except httpx.TimeoutException:
        logger.warning("search_retry_timeout")
        return []
    except (ToolError, httpx.HTTPError, ValueError) as e:
        logger.warning("search_retry_failed: %s", type(e).__name__)
        return []
    return parse_hits(payload, count, HIT_SOURCE_TRANSLATED)


def _failure(message: str, query: str, source: str, search_time: Optional[int] = None) -> ToolResult[SearchOutcome]:
    return ToolResult(
        success=False,
        error=message,
        data=SearchOutcome(query=query, results=[], source=source, search_time=search_time),
    )


def _upstream_message(status_code: int) -> str:
    if status_code == 429:
        return MSG_RATE_LIMITED
    if status_code == 401:
        return MSG_AUTH_FAILED
    return MSG_UNAVAILABLE


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


async def _run_search(
    client: httpx.AsyncClient,
    ctx: ToolContext,
    api_key: str,
    query: str,
    count: int,
    freshness: Optional[str],
    started: float,
) -> ToolResult[SearchOutcome]:
    payload = await _query_index(client, ctx, api_key, query, count, freshness)
    results = parse_hits(payload, count)
    search_time = _elapsed_ms(started)

    if results:
        outcome = SearchOutcome(
            query=query,
            results=results,
            source=SOURCE_SEARCH,
            total_results=len(results),
            search_time=search_time,
        )
        return ToolResult(success=True, data=outcome, display_value=format_search_display(outcome))

    if is_likely_korean(query):
        retried = await _retry_in_english(client, ctx, api_key, query, count, freshness)
        if retried:
            logger.info("search_retry_succeeded: results=%d", len(retried))
            outcome = SearchOutcome(
                query=f"{query}{TRANSLATED_SUFFIX}",
                results=retried,
                source=SOURCE_SEARCH_TRANSLATED,
                total_results=len(retried),
                search_time=_elapsed_ms(started),
            )
            return ToolResult(success=True, data=outcome, display_value=format_search_display(outcome))

    return ToolResult(
        success=False,
        error=MSG_NO_RESULTS,
        data=SearchOutcome(
            query=query,
            results=[],
            source=SOURCE_SEARCH,
            total_results=0,
            search_time=search_time,
        ),
    )


async def search_web(
    query: Any,
    max_results: Any = DEFAULT_MAX_RESULTS,
    ctx: Optional[ToolContext] = None,
) -> ToolResult[SearchOutcome]:
    """
    Search the web for `query`. Validation, rate limiting, configuration, network and
    empty-result failures all come back as success=False with `data.source` naming the stage.
    """
    ctx = ctx or ToolContext()
    settings = ctx.settings

    try:
        sanitized = sanitize_input(query)
    except ValidationError as e:
        logger.warning("invalid_search_query: %s", e)
        return _failure(MSG_INVALID_QUERY, query_preview(query), ErrorSource.INPUT_VALIDATION.value)

    if not ctx.rate_limiter.check(
        f"search_{ctx.client_id}", settings.search_rate_limit, settings.rate_limit_window_ms
    ):
        logger.warning("search_rate_limited: client=%s", short_id(ctx.client_id))
        return _failure(MSG_RATE_LIMITED, sanitized, ErrorSource.RATE_LIMIT.value)

    count = clamp_max_results(max_results)

    api_key = settings.brave_search_api_key
    if not api_key:
        logger.error("search_not_configured: BRAVE_SEARCH_API_KEY missing")
        return _failure(MSG_NOT_CONFIGURED, sanitized, ErrorSource.CONFIGURATION.value)

    freshness = select_freshness(sanitized, datetime.now().year)
    started = time.perf_counter()

    try:
        async with ctx.client() as client:
            return await _run_search(client, ctx, api_key, sanitized, count, freshness, started)
    except UrlValidationError:
        logger.error("search_url_rejected")
        return _failure(MSG_URL_REJECTED, sanitized, ErrorSource.URL_VALIDATION.value)
    except UpstreamApiError as e:
        return _failure(_upstream_message(e.status_code), sanitized, ErrorSource.SEARCH_API.value, _elapsed_ms(started))
    except httpx.TimeoutException:
        logger.warning("search_timeout")
        return _failure(MSG_TIMEOUT, sanitized, ErrorSource.TIMEOUT.value)
    except Exception as e:
        logger.error("web_search_error: %s", str(e)[:200])
        return _failure(MSG_ERROR, sanitized, ErrorSource.UNEXPECTED.value)
