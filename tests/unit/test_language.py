"""Unit tests for language: Hangul detection, technical terms, year freshness mapping."""
import pytest

from tools.language import (
    FRESHNESS_PAST_MONTH,
    FRESHNESS_PAST_WEEK,
    FRESHNESS_PAST_YEAR,
    extract_technical_terms,
    extract_year,
    is_likely_korean,
    mentions_technical_term,
    select_freshness,
)


class TestIsLikelyKorean:
    def test_hangul(self):
        assert is_likely_korean("마비노기 모바일 2024년 소식")

    def test_mixed(self):
        assert is_likely_korean("RxJS 최신 문서")

    @pytest.mark.parametrize("text", ["latest rxjs docs", "東京の天気", "", "2024"])
    def test_non_hangul(self, text):
        assert not is_likely_korean(text)


class TestTechnicalTerms:
    def test_terms_next_to_hangul(self):
        assert extract_technical_terms("RxJS에서 Angular 사용법") == ["RxJS", "Angular"]

    def test_no_partial_words(self):
        assert extract_technical_terms("nodejs gitlab awsome") == []

    def test_no_terms(self):
        assert extract_technical_terms("마비노기 모바일") == []

    def test_mentions_documentation(self):
        assert mentions_technical_term("official documentation")
        assert not mentions_technical_term("Mabinogi news")


class TestFreshness:
    def test_year_followed_by_hangul(self):
        assert extract_year("마비노기 모바일 2024년 소식") == 2024

    def test_no_year(self):
        assert extract_year("latest news") is None
        assert extract_year("12024 items") is None

    def test_current_year_is_past_month(self):
        assert select_freshness("news 2026", 2026) == FRESHNESS_PAST_MONTH

    def test_last_year_is_past_year(self):
        assert select_freshness("2025년 소식", 2026) == FRESHNESS_PAST_YEAR

    def test_three_years_ago_is_unrestricted(self):
        assert select_freshness("2023 review", 2026) is None

    def test_two_years_ago_is_unrestricted(self):
        assert select_freshness("2024 review", 2026) is None

    def test_default_is_past_week(self):
        assert select_freshness("latest updates", 2026) == FRESHNESS_PAST_WEEK

    def test_future_year_is_past_week(self):
        assert select_freshness("2030 plans", 2026) == FRESHNESS_PAST_WEEK
