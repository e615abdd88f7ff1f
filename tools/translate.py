"""
Translate tool backed by the DeepL API (form POST over httpx).
"""
import logging
import re
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from tools.base import SOURCE_TRANSLATE, ErrorSource, ToolResult, TranslationOutcome, query_preview
from tools.context import ToolContext
from tools.errors import UpstreamApiError, UrlValidationError, ValidationError
from tools.security import ensure_allowed_url, sanitize_input, sanitize_output

logger = logging.getLogger(__name__)

DEEPL_SERVICE = "DeepL"
MAX_TEXT_LENGTH = 5000
AUTO_DETECTED = "auto-detected"

_LANGUAGE_CODE = re.compile(r"^[A-Za-z]{2}$")

MSG_INVALID_TEXT = "번역할 텍스트가 유효하지 않습니다."
MSG_INVALID_LANGUAGE = "지원하지 않는 언어 코드입니다. 2자리 언어 코드(예: EN, KO)를 사용해주세요."
MSG_NOT_CONFIGURED = "번역 서비스를 일시적으로 사용할 수 없습니다. 잠시 후 다시 시도해주세요."
MSG_URL_REJECTED = "번역 서비스 오류가 발생했습니다. 관리자에게 문의해주세요."
MSG_RATE_LIMITED = "번역 서비스 한도를 초과했습니다. 잠시 후 다시 시도해주세요."
MSG_AUTH_FAILED = "번역 서비스 인증에 실패했습니다."
MSG_UPSTREAM = "번역 중 오류가 발생했습니다."
MSG_TIMEOUT = "번역 요청이 시간 초과되었습니다."
MSG_ERROR = "번역 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


class TranslateInput(BaseModel):
    """Input for DeepL translation."""
    text: str = Field(
        min_length=1,
        max_length=MAX_TEXT_LENGTH,
        description="The text to translate.",
    )
    target_language: str = Field(
        min_length=2,
        max_length=2,
        description=(
            "Target language code (e.g., EN for English, KO for Korean, JA for Japanese, ZH for Chinese, "
            "DE for German, FR for French, ES for Spanish, IT for Italian)."
        ),
    )
    source_language: Optional[str] = Field(
        default=None,
        min_length=2,
        max_length=2,
        description="Source language code (optional, if not provided DeepL will auto-detect).",
    )


def normalize_language(code: Any) -> str:
    if not isinstance(code, str) or not _LANGUAGE_CODE.match(code.strip()):
        raise ValidationError("Language code must be two letters")
    return code.strip().upper()


async def _translate_with_deepl(
    client: httpx.AsyncClient,
    ctx: ToolContext,
    text: str,
    target: str,
    source: Optional[str],
) -> str:
    settings = ctx.settings
    url = ensure_allowed_url(settings.deepl_api_url)
    form = {
        "text": text,
        "target_lang": target,
        "preserve_formatting": "1",
        "formality": "default",
    }
    if source:
        form["source_lang"] = source

    response = await client.post(
        url,
        data=form,
        headers={
            "Authorization": f"DeepL-Auth-Key {settings.deepl_api_key}",
            "User-Agent": f"{settings.app_title}/1.0 Translation Service",
        },
        timeout=settings.request_timeout,
    )
    if not response.is_success:
        logger.warning("deepl_api_error: status=%s", response.status_code)
        raise UpstreamApiError(DEEPL_SERVICE, response.status_code)

    payload = response.json()
    translations = payload.get("translations") if isinstance(payload, dict) else None
    if not isinstance(translations, list) or not translations or not isinstance(translations[0], dict):
        raise UpstreamApiError(DEEPL_SERVICE, response.status_code, "Invalid DeepL API response")
    return translations[0].get("text") or ""


def _failure(
    message: str,
    text: str,
    source: str,
    target: str = "",
    source_language: str = AUTO_DETECTED,
) -> ToolResult[TranslationOutcome]:
    return ToolResult(
        success=False,
        error=message,
        data=TranslationOutcome(
            original_text=text,
            translated_text="",
            source_language=source_language,
            target_language=target,
            source=source,
        ),
    )


def _upstream_message(status_code: int) -> str:
    if status_code in (429, 456):  # 456: DeepL quota exceeded
        return MSG_RATE_LIMITED
    if status_code in (401, 403):
        return MSG_AUTH_FAILED
    return MSG_UPSTREAM


async def translate_text(
    text: Any,
    target_language: Any,
    source_language: Any = None,
    ctx: Optional[ToolContext] = None,
) -> ToolResult[TranslationOutcome]:
    ctx = ctx or ToolContext()

    try:
        sanitized = sanitize_input(text, max_length=MAX_TEXT_LENGTH)
    except ValidationError as e:
        logger.warning("invalid_translate_text: %s", e)
        return _failure(MSG_INVALID_TEXT, query_preview(text), ErrorSource.INPUT_VALIDATION.value)

    try:
        target = normalize_language(target_language)
        source = normalize_language(source_language) if source_language else None
    except ValidationError:
        return _failure(MSG_INVALID_LANGUAGE, sanitized, ErrorSource.INPUT_VALIDATION.value)

    source_label = source or AUTO_DETECTED
    if not ctx.settings.deepl_api_key:
        logger.error("translate_not_configured: DEEPL_API_KEY missing")
        return _failure(MSG_NOT_CONFIGURED, sanitized, ErrorSource.CONFIGURATION.value, target, source_label)

    logger.info("translate_request: target=%s chars=%d", target, len(sanitized))
    try:
        async with ctx.client() as client:
            translated = await _translate_with_deepl(client, ctx, sanitized, target, source)
    except UrlValidationError:
        logger.error("translate_url_rejected")
        return _failure(MSG_URL_REJECTED, sanitized, ErrorSource.URL_VALIDATION.value, target, source_label)
    except UpstreamApiError as e:
        return _failure(_upstream_message(e.status_code), sanitized, ErrorSource.DEEPL_API.value, target, source_label)
    except httpx.TimeoutException:
        logger.warning("translate_timeout")
        return _failure(MSG_TIMEOUT, sanitized, ErrorSource.TIMEOUT.value, target, source_label)
    except Exception as e:
        logger.error("translate_error: %s", str(e)[:200])
        return _failure(MSG_ERROR, sanitized, ErrorSource.UNEXPECTED.value, target, source_label)

    outcome = TranslationOutcome(
        original_text=sanitized,
        translated_text=sanitize_output(translated),
        source_language=source_label,
        target_language=target,
        provider=SOURCE_TRANSLATE,
        source=SOURCE_TRANSLATE,
    )
    return ToolResult(success=True, data=outcome, display_value=outcome.translated_text)
