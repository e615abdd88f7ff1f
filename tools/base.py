"""Shared types for tool inputs/outputs. Every tool returns a ToolResult envelope."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from tools.security import sanitize_output

T = TypeVar("T")


class ErrorSource(str, Enum):
    """Provenance / failure-stage tags carried in result data as `source`."""
    INPUT_VALIDATION = "Input Validation Error"
    RATE_LIMIT = "Rate Limit Error"
    CONFIGURATION = "Configuration Error"
    URL_VALIDATION = "URL Validation Error"
    TIMEOUT = "Timeout Error"
    SEARCH_API = "Brave Search API Error"
    COMPLETION_API = "OpenRouter API Error"
    DEEPL_API = "DeepL API Error"
    EMPTY_SUMMARY = "Empty Summary Error"
    SEARCH = "Search Error"
    UNKNOWN_TOOL = "Unknown Tool Error"
    UNEXPECTED = "Error"


SOURCE_SEARCH = "Brave Search API"
SOURCE_SEARCH_TRANSLATED = "Brave Search API (AI Translation)"
SOURCE_SUMMARY = "OpenRouter API"
SOURCE_TRANSLATE = "DeepL"

HIT_SOURCE = "Brave Search"
HIT_SOURCE_TRANSLATED = "Brave Search (AI Translation)"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ToolResult(Generic[T]):
    """Envelope returned by every tool. Failures still carry best-effort data."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    display_value: Optional[str] = None


@dataclass(frozen=True)
class SearchResult:
    """Single web hit. title/snippet are already output-sanitized."""
    title: str
    url: str
    snippet: str
    published: Optional[str] = None
    source: Optional[str] = None
    relevance_score: Optional[float] = None
    domain: Optional[str] = None


@dataclass(frozen=True)
class SearchOutcome:
    query: str
    results: list[SearchResult] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_timestamp)
    source: str = SOURCE_SEARCH
    total_results: Optional[int] = None
    search_time: Optional[int] = None  # ms


@dataclass(frozen=True)
class SummaryOutcome:
    summary: str
    sources: list[str]
    query: str
    timestamp: str = field(default_factory=utc_timestamp)
    source: str = SOURCE_SUMMARY


@dataclass(frozen=True)
class TimeData:
    time: str
    date: str
    datetime: str
    timezone: str
    unix_timestamp: int
    utc_offset: str


@dataclass(frozen=True)
class TranslationOutcome:
    original_text: str
    translated_text: str
    source_language: str
    target_language: str
    provider: str = SOURCE_TRANSLATE
    timestamp: str = field(default_factory=utc_timestamp)
    source: str = SOURCE_TRANSLATE


@dataclass(frozen=True)
class ToolFailure:
    """Data attached to dispatcher-level failures (no tool-specific shape available)."""
    tool: str
    source: str
    details: dict[str, Any] = field(default_factory=dict)


def query_preview(query: Any, limit: int = 50) -> str:
    """Truncated echo of a rejected argument, safe to return to the caller."""
    if not isinstance(query, str):
        return ""
    preview = query[:limit]
    if len(query) > limit:
        preview += "..."
    return sanitize_output(preview)
