"""
Tool registry: every ToolName maps to exactly one ToolSpec (argument schema + async handler).
execute_tool is the single entry point for model-issued tool calls and never raises;
unknown names and handler exceptions come back as ToolResult failures.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from langchain_core.tools import StructuredTool
from langchain_core.utils.function_calling import convert_to_openai_tool
from pydantic import BaseModel

from tools.base import ErrorSource, ToolFailure, ToolResult
from tools.context import ToolContext
from tools.current_time import CurrentTimeInput, get_current_time
from tools.security import sanitize_output
from tools.summarize import SummarizeInput, search_and_summarize
from tools.translate import TranslateInput, translate_text
from tools.web_search import DEFAULT_MAX_RESULTS, WebSearchInput, search_web

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    SEARCH_WEB = "search_web"
    SEARCH_AND_SUMMARIZE = "search_and_summarize"
    GET_CURRENT_TIME = "get_current_time"
    TRANSLATE_TEXT = "translate_text"


Handler = Callable[[dict[str, Any], ToolContext], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    args_schema: type[BaseModel]
    handler: Handler


async def _run_search_web(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    return await search_web(args.get("query"), args.get("max_results", DEFAULT_MAX_RESULTS), ctx)


async def _run_search_and_summarize(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    return await search_and_summarize(args.get("query"), ctx)


async def _run_get_current_time(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    return get_current_time(args.get("timezone"), args.get("format", "full"))


async def _run_translate_text(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    return await translate_text(args.get("text"), args.get("target_language"), args.get("source_language"), ctx)


TOOL_SPECS: dict[ToolName, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name=ToolName.SEARCH_WEB,
            description=(
                "REQUIRED for ANY request about current events, latest news, recent updates, or "
                "time-sensitive information. Search the internet for real-time information. Always use "
                'this tool when users ask for "latest", "recent", "current", or specify dates/years. '
                "Do NOT provide outdated information from training data."
            ),
            args_schema=WebSearchInput,
            handler=_run_search_web,
        ),
        ToolSpec(
            name=ToolName.SEARCH_AND_SUMMARIZE,
            description=(
                "REQUIRED for comprehensive current information requests. Search the internet and "
                "provide AI-generated summary of the results. Always use this tool when users want "
                "detailed, up-to-date information about topics."
            ),
            args_schema=SummarizeInput,
            handler=_run_search_and_summarize,
        ),
        ToolSpec(
            name=ToolName.GET_CURRENT_TIME,
            description=(
                "Gets the current time and date in various timezones and formats. Use this tool to get "
                "accurate time information for different regions or compare times across timezones."
            ),
            args_schema=CurrentTimeInput,
            handler=_run_get_current_time,
        ),
        ToolSpec(
            name=ToolName.TRANSLATE_TEXT,
            description=(
                "Translate text between different languages using DeepL API. Supports Korean, English, "
                "Japanese, Chinese, and many European languages."
            ),
            args_schema=TranslateInput,
            handler=_run_translate_text,
        ),
    )
}

_unregistered = set(ToolName) - set(TOOL_SPECS)
if _unregistered:
    raise RuntimeError(f"Tools without a spec: {sorted(t.value for t in _unregistered)}")


def render_for_model(result: ToolResult) -> str:
    """Text handed back to the model for a tool call."""
    if result.success:
        return result.display_value or ""
    return result.error or "Tool call failed."


async def execute_tool(name: Any, args: Any, ctx: Optional[ToolContext] = None) -> ToolResult:
    try:
        tool_name = ToolName(name)
    except (ValueError, TypeError):
        safe_name = sanitize_output(str(name))[:100]
        logger.warning("unknown_tool: %s", safe_name)
        return ToolResult(
            success=False,
            error=f"Unknown tool: {safe_name}",
            data=ToolFailure(tool=safe_name, source=ErrorSource.UNKNOWN_TOOL.value),
        )

    spec = TOOL_SPECS[tool_name]
    arguments = args if isinstance(args, dict) else {}
    ctx = ctx or ToolContext()

    start = time.perf_counter()
    try:
        result = await spec.handler(arguments, ctx)
    except Exception as e:
        logger.error("tool_execution_failed: tool=%s error=%s", tool_name.value, str(e)[:200])
        return ToolResult(
            success=False,
            error=f"Tool execution failed: {e}",
            data=ToolFailure(tool=tool_name.value, source=ErrorSource.UNEXPECTED.value),
        )
    duration = time.perf_counter() - start
    logger.info("tool_call: tool=%s success=%s duration_sec=%.3f", tool_name.value, result.success, duration)
    return result


def _as_structured_tool(spec: ToolSpec, ctx: Optional[ToolContext]) -> StructuredTool:
    async def _call(**kwargs: Any) -> str:
        result = await execute_tool(spec.name.value, kwargs, ctx)
        return render_for_model(result)

    return StructuredTool.from_function(
        coroutine=_call,
        name=spec.name.value,
        description=spec.description,
        args_schema=spec.args_schema,
    )


def build_langchain_tools(ctx: Optional[ToolContext] = None) -> list[StructuredTool]:
    """LangChain tools for binding to a chat model (llm.bind_tools / agents)."""
    return [_as_structured_tool(spec, ctx) for spec in TOOL_SPECS.values()]


def tool_definitions() -> list[dict[str, Any]]:
    """OpenAI function-calling schemas for every registered tool."""
    return [convert_to_openai_tool(tool) for tool in build_langchain_tools()]
