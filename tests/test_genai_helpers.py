"""Tests for the pure helpers behind the AI endpoints."""
from bizvest.schemas.genai import ProjectionItem
from bizvest.services.genai_service import (
    extract_keywords,
    split_product_names,
    summarize_projections,
)


def _year(year, revenue, net_income):
    return ProjectionItem(year=year, revenue=revenue, expenses=0, net_income=net_income, cash_flow=0)


class TestSplitProductNames:
    def test_comma_separated(self):
        assert split_product_names("Keripik Tempe, Sambal Bawang ,Kopi Susu") == [
            "Keripik Tempe",
            "Sambal Bawang",
            "Kopi Susu",
        ]

    def test_strips_quotes_and_drops_empty(self):
        assert split_product_names('"Kopi Susu, Teh Manis", ,') == ["Kopi Susu", "Teh Manis"]

    def test_empty_answer(self):
        assert split_product_names("") == []


class TestExtractKeywords:
    def test_drops_short_and_stop_words(self):
        assert extract_keywords("Saya ingin invest di bisnis kopi Bandung") == ["kopi", "bandung"]

    def test_english_stop_words(self):
        assert extract_keywords("I want to invest in a coffee business") == ["coffee"]

    def test_only_stop_words(self):
        assert extract_keywords("saya mau investasi") == []


class TestSummarizeProjections:
    def test_growth_and_break_even(self):
        items = [
            _year(2027, 100.0, -10.0),
            _year(2028, 110.0, -5.0),
            _year(2029, 121.0, 3.0),
        ]
        summary = summarize_projections(items)
        assert summary["total_projected_revenue"] == 331.0
        assert summary["average_growth_rate"] == "10.0%"
        assert summary["break_even_year"] == "2029"

    def test_unsorted_input(self):
        items = [_year(2028, 150.0, 1.0), _year(2027, 100.0, 0.0)]
        summary = summarize_projections(items)
        assert summary["average_growth_rate"] == "50.0%"
        assert summary["break_even_year"] == "2028"

    def test_zero_previous_revenue_skipped(self):
        items = [_year(2027, 0.0, -1.0), _year(2028, 100.0, -1.0), _year(2029, 125.0, -1.0)]
        summary = summarize_projections(items)
        assert summary["average_growth_rate"] == "25.0%"
        assert summary["break_even_year"] == "N/A"

    def test_no_growth_data(self):
        summary = summarize_projections([_year(2027, 100.0, 5.0)])
        assert summary["average_growth_rate"] == "N/A"
        assert summary["break_even_year"] == "2027"

    def test_empty(self):
        summary = summarize_projections([])
        assert summary == {
            "total_projected_revenue": 0,
            "average_growth_rate": "N/A",
            "break_even_year": "N/A",
        }
