"""
Search-and-summarize tool: gathers up to 10 web results, then asks the completion model
for one grounded summary of the first 5. Search failures are propagated without an LLM call.
"""
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from tools.base import (
    SOURCE_SUMMARY,
    ErrorSource,
    SearchResult,
    SummaryOutcome,
    ToolResult,
    query_preview,
)
from tools.completion import request_completion
from tools.context import ToolContext
from tools.errors import UpstreamApiError, UrlValidationError, ValidationError
from tools.security import MAX_QUERY_LENGTH, sanitize_input, sanitize_output, short_id
from tools.web_search import MSG_INVALID_QUERY, MSG_RATE_LIMITED, search_web

logger = logging.getLogger(__name__)

SEARCH_RESULT_COUNT = 10
PROMPT_RESULT_LIMIT = 5

MSG_NO_SEARCH_RESULTS = "검색 결과가 없어 요약을 생성할 수 없습니다."
MSG_NOT_CONFIGURED = "요약 서비스를 일시적으로 사용할 수 없습니다. 잠시 후 다시 시도해주세요."
MSG_URL_REJECTED = "요약 서비스 오류가 발생했습니다. 관리자에게 문의해주세요."
MSG_UPSTREAM_RATE_LIMITED = "요약 서비스 한도를 초과했습니다. 잠시 후 다시 시도해주세요."
MSG_AUTH_FAILED = "요약 서비스 인증에 실패했습니다."
MSG_UPSTREAM = "요약 생성 중 오류가 발생했습니다."
MSG_EMPTY_SUMMARY = "요약 생성에 실패했습니다."
MSG_TIMEOUT = "요약 요청이 시간 초과되었습니다."
MSG_ERROR = "요약 생성 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."

SUMMARY_SYSTEM_PROMPT = """당신은 웹 검색 결과를 요약하는 도우미입니다.
제공된 내용을 정확하게 분석하고, 중요한 정보를 간결하게 요약해주세요.
요약 시 다음 사항을 지켜주세요:
1. 중요 정보만 포함시키고 중복을 제거하세요.
2. 사실을 왜곡하거나 없는 정보를 추가하지 마세요.
3. 쿼리와 관련 없는 내용은 제외하세요.
4. 제공된 정보만 사용하고 외부 지식을 추가하지 마세요.
5. 한국어로 자연스럽게 요약해주세요. 단, 영어 쿼리인 경우 영어로 요약해주세요.
6. 모든 날짜와 수치 정보는 정확하게 포함해주세요.
7. 중립적인 어조를 유지하세요.

출력 형식:
- 결과를 500-1000자 사이로 요약하세요.
- 여러 단락으로 구성하되, 중요한 정보는 첫 단락에 넣으세요.
- 내용이 부족하거나 관련성이 낮다면 "제공된 정보로는 충분한 요약을 제공할 수 없습니다"라고 명시하세요."""


class SummarizeInput(BaseModel):
    """Input for search-and-summarize."""
    query: str = Field(
        min_length=1,
        max_length=MAX_QUERY_LENGTH,
        description=(
            "Search query to summarize in any language including Korean. Include specific dates, "
            "years, or time periods when relevant. Write clearly and concretely."
        ),
    )


def build_summary_prompt(query: str, results: list[SearchResult]) -> tuple[str, list[str]]:
    """User message for the summarizer plus "title (url)" citations, from the first 5 results."""
    parts = [f"쿼리: {query}\n"]
    sources = []
    for i, result in enumerate(results[:PROMPT_RESULT_LIMIT], 1):
        parts.append(f"문서 {i}:\n제목: {result.title}\n내용: {result.snippet}\n출처: {result.url}\n")
        sources.append(f"{result.title} ({result.url})")
    return "\n".join(parts), sources


def format_summary_display(outcome: SummaryOutcome) -> str:
    if not outcome.sources:
        return outcome.summary
    cited = "\n".join(f"[{i}] {source}" for i, source in enumerate(outcome.sources, 1))
    return f"{outcome.summary}\n\n출처:\n{cited}"


def _failure(message: str, query: str, source: str) -> ToolResult[SummaryOutcome]:
    return ToolResult(
        success=False,
        error=message,
        data=SummaryOutcome(summary="", sources=[], query=query, source=source),
    )


def _upstream_message(status_code: int) -> str:
    if status_code == 429:
        return MSG_UPSTREAM_RATE_LIMITED
    if status_code == 401:
        return MSG_AUTH_FAILED
    return MSG_UPSTREAM


async def _summarize(client: httpx.AsyncClient, ctx: ToolContext, content: str) -> str:
    settings = ctx.settings
    return await request_completion(
        client,
        url=settings.completion_api_url,
        api_key=settings.openrouter_api_key,
        model=settings.summarization_model,
        messages=[
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": content},
        ],
        max_tokens=1500,
        temperature=0.3,
        top_p=0.9,
        timeout=settings.summarizer_timeout,
        title=f"{settings.app_title} Summarization Service",
    )


async def search_and_summarize(query: Any, ctx: Optional[ToolContext] = None) -> ToolResult[SummaryOutcome]:
    ctx = ctx or ToolContext()
    settings = ctx.settings

    try:
        sanitized = sanitize_input(query)
    except ValidationError as e:
        logger.warning("invalid_summarize_query: %s", e)
        return _failure(MSG_INVALID_QUERY, query_preview(query), ErrorSource.INPUT_VALIDATION.value)

    if not ctx.rate_limiter.check(
        f"summarize_{ctx.client_id}", settings.summarize_rate_limit, settings.rate_limit_window_ms
    ):
        logger.warning("summarize_rate_limited: client=%s", short_id(ctx.client_id))
        return _failure(MSG_RATE_LIMITED, sanitized, ErrorSource.RATE_LIMIT.value)

    search = await search_web(sanitized, SEARCH_RESULT_COUNT, ctx)
    if not search.success or search.data is None or not search.data.results:
        source = search.data.source if search.data is not None else ErrorSource.SEARCH.value
        return _failure(search.error or MSG_NO_SEARCH_RESULTS, sanitized, source)

    if not settings.openrouter_api_key:
        logger.error("summarize_not_configured: OPENROUTER_API_KEY missing")
        return _failure(MSG_NOT_CONFIGURED, sanitized, ErrorSource.CONFIGURATION.value)

    content, sources = build_summary_prompt(sanitized, search.data.results)

    try:
        async with ctx.client() as client:
            summary = await _summarize(client, ctx, content)
    except UrlValidationError:
        logger.error("summarize_url_rejected")
        return _failure(MSG_URL_REJECTED, sanitized, ErrorSource.URL_VALIDATION.value)
    except UpstreamApiError as e:
        return _failure(_upstream_message(e.status_code), sanitized, ErrorSource.COMPLETION_API.value)
    except httpx.TimeoutException:
        logger.warning("summarize_timeout")
        return _failure(MSG_TIMEOUT, sanitized, ErrorSource.TIMEOUT.value)
    except Exception as e:
        logger.error("summarize_error: %s", str(e)[:200])
        return _failure(MSG_ERROR, sanitized, ErrorSource.UNEXPECTED.value)

    summary = sanitize_output(summary.strip())
    if not summary:
        return _failure(MSG_EMPTY_SUMMARY, sanitized, ErrorSource.EMPTY_SUMMARY.value)

    outcome = SummaryOutcome(summary=summary, sources=sources, query=sanitized, source=SOURCE_SUMMARY)
    return ToolResult(success=True, data=outcome, display_value=format_summary_display(outcome))
