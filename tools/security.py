"""
Input/output sanitization, outbound URL allow-list, and secret masking for logs.
Every query sent to an upstream API passes sanitize_input; every upstream string
placed into a tool result passes sanitize_output.
"""
import logging
import re
from typing import Any, Iterable
from urllib.parse import urlsplit

from tools.errors import UrlValidationError, ValidationError

MAX_QUERY_LENGTH = 500
MAX_RESULTS_LIMIT = 10
ALLOWED_DOMAINS = (
    "api.search.brave.com",
    "openrouter.ai",
    "api-free.deepl.com",
)
ALLOWED_SCHEMES = ("http", "https")

_FORBIDDEN_CHARS = re.compile(r"[<>\"'&]")
_DANGEROUS_SCHEMES = re.compile(r"(?:javascript|data|vbscript):", re.IGNORECASE)

_OUTPUT_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)


def sanitize_input(raw: Any, max_length: int = MAX_QUERY_LENGTH) -> str:
    """
    Validate and clean a user/LLM supplied string before it goes into a URL or request body.
    Raises ValidationError for empty, non-string, oversized, or fully-forbidden input.
    """
    if not raw or not isinstance(raw, str):
        raise ValidationError("Invalid input: must be a non-empty string")
    if len(raw) > max_length:
        raise ValidationError(f"Input too long: maximum {max_length} characters allowed")

    cleaned = _FORBIDDEN_CHARS.sub("", raw)
    # "javajavascript:script:" collapses into a new match after one pass
    while _DANGEROUS_SCHEMES.search(cleaned):
        cleaned = _DANGEROUS_SCHEMES.sub("", cleaned)
    cleaned = cleaned.strip()

    if not cleaned:
        raise ValidationError("Invalid input: contains only forbidden characters")
    return cleaned


def sanitize_output(text: Any) -> str:
    """HTML-entity encode text that will be rendered or sent back to the model."""
    if not text or not isinstance(text, str):
        return ""
    for char, entity in _OUTPUT_ESCAPES:
        text = text.replace(char, entity)
    return text


def is_valid_api_url(url: str, allowed_domains: Iterable[str] = ALLOWED_DOMAINS) -> bool:
    """True only for http(s) URLs whose host is exactly one of allowed_domains."""
    if not url or not isinstance(url, str):
        return False
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return False
    return parts.scheme in ALLOWED_SCHEMES and hostname in tuple(allowed_domains)


def ensure_allowed_url(url: str, allowed_domains: Iterable[str] = ALLOWED_DOMAINS) -> str:
    if not is_valid_api_url(url, allowed_domains):
        raise UrlValidationError(url)
    return url


# --- Log masking -------------------------------------------------------------

_SECRET_PATTERNS = (
    (re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)[^\"',\s}]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(bearer\s+)[A-Za-z0-9._\-]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(x-subscription-token[\"']?\s*[:=]\s*[\"']?)[^\"',\s}]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(deepl-auth-key\s+)[^\"',\s}]+", re.IGNORECASE), r"\1***"),
)


def mask_secrets(text: str) -> str:
    """Mask api keys and auth tokens in free text."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def short_id(identifier: str) -> str:
    """Client identifiers are logged truncated."""
    return (identifier or "")[:8]


class SecretMaskingFilter(logging.Filter):
    """Rewrites every record so secrets never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True
