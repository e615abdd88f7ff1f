"""
Script and keyword detection used to decide when and how to retry a search in English,
plus the year-based freshness hint.
"""
import re
from typing import Optional

HANGUL = re.compile(r"[가-힣]")

TECHNICAL_TERMS = (
    "rxjs", "angular", "react", "vue", "typescript", "javascript", "node", "npm",
    "webpack", "babel", "eslint", "jest", "cypress", "docker", "kubernetes", "aws",
    "git", "github", "vscode",
)

# re.ASCII: Hangul counts as a word boundary, so "rxjs에서" and "2024년" still match
_TECH_TERM_PATTERN = re.compile(
    r"\b(" + "|".join(TECHNICAL_TERMS) + r")\b",
    re.IGNORECASE | re.ASCII,
)
_YEAR_PATTERN = re.compile(r"\b(20\d{2})\b", re.ASCII)

FRESHNESS_PAST_WEEK = "pw"
FRESHNESS_PAST_MONTH = "pm"
FRESHNESS_PAST_YEAR = "py"


def is_likely_korean(text: str) -> bool:
    return bool(text) and HANGUL.search(text) is not None


def extract_technical_terms(text: str) -> list[str]:
    """Technical terms found in text, in order of appearance, original casing."""
    if not text:
        return []
    return [m.group(1) for m in _TECH_TERM_PATTERN.finditer(text)]


def mentions_technical_term(text: str) -> bool:
    return bool(extract_technical_terms(text)) or "documentation" in (text or "").lower()


def extract_year(text: str) -> Optional[int]:
    match = _YEAR_PATTERN.search(text or "")
    return int(match.group(1)) if match else None


def select_freshness(query: str, current_year: int) -> Optional[str]:
    """
    Map a year mentioned in the query to a search recency window.
    None means unrestricted. Queries without a year (or naming a future year) get past-week.
    """
    year = extract_year(query)
    if year is None:
        return FRESHNESS_PAST_WEEK
    year_diff = current_year - year
    if year_diff >= 2:
        return None
    if year_diff == 1:
        return FRESHNESS_PAST_YEAR
    if year_diff == 0:
        return FRESHNESS_PAST_MONTH
    return FRESHNESS_PAST_WEEK
