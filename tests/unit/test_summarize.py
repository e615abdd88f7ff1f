"""Unit tests for summarize: prompt assembly, search-failure propagation, LLM failures."""
import asyncio
import json

import httpx
import pytest

from conftest import COMPLETION_HOST, SEARCH_HOST, brave_payload, completion_payload, hit
from tools.base import SOURCE_SUMMARY, ErrorSource, SearchResult
from tools.summarize import SUMMARY_SYSTEM_PROMPT, build_summary_prompt, search_and_summarize


def run_summary(ctx, query):
    return asyncio.run(search_and_summarize(query, ctx))


def six_hits():
    return brave_payload(*[hit(title=f"Doc {i}", url=f"https://d{i}.example.com", description=f"Body {i}") for i in range(6)])


def test_build_summary_prompt_uses_first_five():
    results = [SearchResult(title=f"T{i}", url=f"https://u{i}.com", snippet=f"S{i}") for i in range(7)]
    content, sources = build_summary_prompt("query", results)
    assert content.startswith("쿼리: query")
    assert "문서 5:" in content
    assert "문서 6:" not in content
    assert sources == [f"T{i} (https://u{i}.com)" for i in range(5)]


def test_summary_success(make_ctx):
    def handler(request):
        if request.url.host == SEARCH_HOST:
            assert request.url.params["count"] == "10"
            return httpx.Response(200, json=six_hits())
        body = json.loads(request.content)
        assert body["messages"][0]["content"] == SUMMARY_SYSTEM_PROMPT
        assert body["max_tokens"] == 1500
        assert body["top_p"] == 0.9
        assert "Doc 4" in body["messages"][1]["content"]
        assert "Doc 5" not in body["messages"][1]["content"]
        return httpx.Response(200, json=completion_payload("Python 3.13 was released <today>."))

    ctx, transport = make_ctx(handler)
    result = run_summary(ctx, "python release")

    assert result.success is True
    assert result.data.summary == "Python 3.13 was released &lt;today&gt;."
    assert result.data.source == SOURCE_SUMMARY
    assert len(result.data.sources) == 5
    assert result.data.sources[0] == "Doc 0 (https://d0.example.com)"
    assert "출처" in result.display_value
    assert len(transport.to(COMPLETION_HOST)) == 1


def test_zero_search_results_propagates_source_without_llm(make_ctx):
    ctx, transport = make_ctx(lambda r: httpx.Response(200, json=brave_payload()))
    result = run_summary(ctx, "nothing here")

    assert result.success is False
    assert result.data.source == "Brave Search API"
    assert result.data.summary == ""
    assert transport.to(COMPLETION_HOST) == []


def test_search_timeout_propagates_source(make_ctx):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    ctx, _ = make_ctx(handler)
    result = run_summary(ctx, "python")
    assert result.data.source == ErrorSource.TIMEOUT.value


def test_missing_llm_key_is_configuration_error(make_ctx):
    ctx, transport = make_ctx(lambda r: httpx.Response(200, json=six_hits()), openrouter_api_key=None)
    result = run_summary(ctx, "python")
    assert result.data.source == ErrorSource.CONFIGURATION.value
    assert transport.to(COMPLETION_HOST) == []


def test_empty_summary(make_ctx):
    def handler(request):
        if request.url.host == SEARCH_HOST:
            return httpx.Response(200, json=six_hits())
        return httpx.Response(200, json={"choices": []})

    ctx, _ = make_ctx(handler)
    result = run_summary(ctx, "python")
    assert result.success is False
    assert result.data.source == ErrorSource.EMPTY_SUMMARY.value


@pytest.mark.parametrize("status,fragment", [(429, "한도"), (401, "인증"), (502, "오류")])
def test_llm_upstream_errors(make_ctx, status, fragment):
    def handler(request):
        if request.url.host == SEARCH_HOST:
            return httpx.Response(200, json=six_hits())
        return httpx.Response(status, text="provider stack trace")

    ctx, _ = make_ctx(handler)
    result = run_summary(ctx, "python")
    assert result.data.source == ErrorSource.COMPLETION_API.value
    assert fragment in result.error
    assert "stack trace" not in result.error


def test_llm_timeout(make_ctx):
    def handler(request):
        if request.url.host == SEARCH_HOST:
            return httpx.Response(200, json=six_hits())
        raise httpx.ReadTimeout("slow", request=request)

    ctx, _ = make_ctx(handler)
    result = run_summary(ctx, "python")
    assert result.data.source == ErrorSource.TIMEOUT.value
    assert "요약" in result.error


def test_disallowed_llm_host(make_ctx):
    ctx, transport = make_ctx(
        lambda r: httpx.Response(200, json=six_hits()),
        completion_api_url="https://llm.evil.example/v1/chat/completions",
    )
    result = run_summary(ctx, "python")
    assert result.data.source == ErrorSource.URL_VALIDATION.value
    assert all(r.url.host == SEARCH_HOST for r in transport.requests)


def test_invalid_query(make_ctx):
    ctx, transport = make_ctx()
    result = run_summary(ctx, "")
    assert result.data.source == ErrorSource.INPUT_VALIDATION.value
    assert transport.requests == []


def test_rate_limited_after_twenty(make_ctx):
    ctx, _ = make_ctx(lambda r: httpx.Response(200, json=brave_payload()))

    async def burst():
        return [await search_and_summarize("python", ctx) for _ in range(21)]

    results = asyncio.run(burst())
    assert results[19].data.source != ErrorSource.RATE_LIMIT.value
    assert results[20].data.source == ErrorSource.RATE_LIMIT.value


def test_markup_in_hit_url_is_encoded_in_prompt_and_sources(make_ctx):
    bad_url = "https://e.example.com/<script>x</script>"

    def handler(request):
        if request.url.host == SEARCH_HOST:
            return httpx.Response(200, json=brave_payload(hit(title="E", url=bad_url)))
        assert "<script>" not in json.loads(request.content)["messages"][1]["content"]
        return httpx.Response(200, json=completion_payload("Summary."))

    ctx, _ = make_ctx(handler)
    result = run_summary(ctx, "python")
    assert result.success is True
    assert "<script>" not in result.data.sources[0]
    assert "<script>" not in result.display_value
