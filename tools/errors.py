"""Exceptions raised inside the tool pipeline. Converted to ToolResult failures at tool boundaries."""
from typing import Optional


class ToolError(Exception):
    """Base class for tool pipeline errors."""


class ValidationError(ToolError, ValueError):
    """Raised when a tool argument is missing, oversized, or sanitizes to nothing."""


class UrlValidationError(ToolError):
    """Raised before any network call when the target URL is not allow-listed."""

    def __init__(self, url: str) -> None:
        # Only the host goes into the message; query strings may carry user input
        super().__init__("Outbound URL rejected by allow-list")
        self.url = url


class UpstreamApiError(ToolError):
    """Non-2xx response from the search, completion, or translation backend."""

    def __init__(self, service: str, status_code: int, detail: Optional[str] = None) -> None:
        super().__init__(f"{service} returned HTTP {status_code}")
        self.service = service
        self.status_code = status_code
        self.detail = detail
