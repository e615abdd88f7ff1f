"""Unit tests for registry: schemas, dispatch, argument adaptation, exception containment."""
import asyncio
from unittest.mock import AsyncMock, patch

import httpx

from conftest import brave_payload, hit
from tools.base import ErrorSource, ToolResult
from tools.registry import (
    TOOL_SPECS,
    ToolName,
    build_langchain_tools,
    execute_tool,
    render_for_model,
    tool_definitions,
)


def test_every_tool_name_has_a_spec():
    assert set(TOOL_SPECS) == set(ToolName)


def test_tool_definitions_shape():
    definitions = {d["function"]["name"]: d["function"] for d in tool_definitions()}
    assert set(definitions) == {"search_web", "search_and_summarize", "get_current_time", "translate_text"}

    search = definitions["search_web"]["parameters"]
    assert search["required"] == ["query"]
    assert search["properties"]["max_results"]["minimum"] == 1
    assert search["properties"]["max_results"]["maximum"] == 10
    assert search["properties"]["max_results"]["default"] == 5

    time_params = definitions["get_current_time"]["parameters"]
    assert time_params["properties"]["format"]["enum"] == ["full", "date", "time"]
    assert not time_params.get("required")


def test_unknown_tool():
    result = asyncio.run(execute_tool("delete_everything", {}))
    assert result.success is False
    assert result.error == "Unknown tool: delete_everything"
    assert result.data.source == ErrorSource.UNKNOWN_TOOL.value


def test_unknown_tool_name_is_escaped():
    result = asyncio.run(execute_tool("<script>", {}))
    assert "<script>" not in result.error


def test_non_string_tool_name():
    assert asyncio.run(execute_tool(None, {})).success is False


def test_get_current_time_dispatch():
    result = asyncio.run(execute_tool("get_current_time", {"timezone": "Mars/Olympus"}))
    assert result.success is True
    assert result.data.timezone == "Asia/Seoul"


def test_search_web_arguments_extracted(make_ctx):
    ctx, _ = make_ctx()
    with patch("tools.registry.search_web", new=AsyncMock(return_value=ToolResult(success=True))) as mock_search:
        asyncio.run(execute_tool("search_web", {"query": "python", "max_results": 3, "extra": 1}, ctx))
    mock_search.assert_awaited_once_with("python", 3, ctx)


def test_summarize_arguments_extracted(make_ctx):
    ctx, _ = make_ctx()
    with patch("tools.registry.search_and_summarize", new=AsyncMock(return_value=ToolResult(success=True))) as mock_sum:
        asyncio.run(execute_tool("search_and_summarize", {"query": "python"}, ctx))
    mock_sum.assert_awaited_once_with("python", ctx)


def test_non_dict_arguments_treated_as_empty(make_ctx):
    ctx, transport = make_ctx()
    result = asyncio.run(execute_tool("search_web", "not a dict", ctx))
    assert result.data.source == ErrorSource.INPUT_VALIDATION.value
    assert transport.requests == []


def test_handler_exception_is_contained(make_ctx):
    ctx, _ = make_ctx()
    with patch("tools.registry.search_web", new=AsyncMock(side_effect=RuntimeError("boom"))):
        result = asyncio.run(execute_tool("search_web", {"query": "python"}, ctx))
    assert result.success is False
    assert result.error == "Tool execution failed: boom"
    assert result.data.tool == "search_web"


def test_render_for_model():
    assert render_for_model(ToolResult(success=True, display_value="shown")) == "shown"
    assert render_for_model(ToolResult(success=False, error="nope")) == "nope"


def test_langchain_tool_invocation(make_ctx):
    ctx, _ = make_ctx(lambda r: httpx.Response(200, json=brave_payload(hit(title="Python 3.13", url="https://python.org"))))
    tools = {t.name: t for t in build_langchain_tools(ctx)}
    out = asyncio.run(tools["search_web"].ainvoke({"query": "python"}))
    assert "Python 3.13" in out
    assert "https://python.org" in out
