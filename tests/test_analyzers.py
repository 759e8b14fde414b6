"""
Tests for the five heuristic analyzers.
"""

import pytest

from analyzers.citation_markers import analyze_citation_markers
from analyzers.content_clarity import (
    analyze_content_clarity,
    jargon_to_score,
    readability_to_score,
    sentence_length_to_score,
)
from analyzers.factual_density import analyze_factual_density
from analyzers.semantic_html import analyze_semantic_html
from analyzers.structured_data import analyze_structured_data
from models.page_models import HeadingNode, ParsedPage

ALL_ANALYZERS = [
    analyze_semantic_html,
    analyze_structured_data,
    analyze_content_clarity,
    analyze_citation_markers,
    analyze_factual_density,
]


class TestAnalyzerContract:
    """Every analyzer returns a bounded score and never raises on thin input."""

    @pytest.mark.parametrize("analyzer", ALL_ANALYZERS)
    def test_empty_page(self, analyzer, empty_page):
        result = analyzer(empty_page)
        assert 0 <= result.score.score <= 100

    @pytest.mark.parametrize("analyzer", ALL_ANALYZERS)
    def test_rich_page(self, analyzer, rich_page):
        result = analyzer(rich_page)
        assert 0 <= result.score.score <= 100

    @pytest.mark.parametrize("analyzer", ALL_ANALYZERS)
    def test_deterministic(self, analyzer, rich_page):
        assert analyzer(rich_page) == analyzer(rich_page)


class TestSemanticHtml:
    def test_well_structured_page(self, rich_page):
        # headings 100, landmarks 100, ratio 100, lists 80, tables 100
        assert analyze_semantic_html(rich_page).score.score == 97

    def test_multiple_h1(self):
        page = ParsedPage(headings=[HeadingNode(level=1, text="A"), HeadingNode(level=1, text="B")])
        result = analyze_semantic_html(page)
        assert any("Multiple <h1>" in issue for issue in result.score.issues)
        assert any(item.priority == "medium" and "<h1>" in item.issue for item in result.actionable_items)

    def test_skipped_levels(self):
        page = ParsedPage(headings=[HeadingNode(level=1, text="A"), HeadingNode(level=3, text="B")])
        result = analyze_semantic_html(page)
        assert any("skipped" in issue for issue in result.score.issues)

    def test_missing_main_is_high_priority(self, empty_page):
        result = analyze_semantic_html(empty_page)
        assert any(item.priority == "high" and "<main>" in item.issue for item in result.actionable_items)


class TestStructuredData:
    def test_rich_page(self, rich_page):
        # json-ld 100, microdata 40, og 100, breadcrumb 100, metadata 100
        result = analyze_structured_data(rich_page)
        assert result.score.score == 91
        assert any("BreadcrumbList" in d for d in result.score.details)

    def test_nothing_present(self, empty_page):
        # only the softened microdata score remains
        result = analyze_structured_data(empty_page)
        assert result.score.score == 6
        assert any(item.priority == "high" for item in result.actionable_items)

    def test_untyped_json_ld(self):
        page = ParsedPage(json_ld=[{"@context": "https://schema.org"}])
        result = analyze_structured_data(page)
        # 70 * 0.30 + 40 * 0.15
        assert result.score.score == 27

    def test_graph_only_json_ld_counts_as_typed(self):
        page = ParsedPage(json_ld=[{"@context": "https://schema.org", "@graph": [{"@type": "WebPage"}]}])
        result = analyze_structured_data(page)
        # types under @graph count: 100 * 0.30 + 40 * 0.15
        assert result.score.score == 36
        assert "Schema types: WebPage" in result.score.details

    def test_partial_open_graph(self):
        page = ParsedPage(open_graph={"og:title": "T", "og:type": "website"})
        result = analyze_structured_data(page)
        # og 2/4 * 80 = 40 -> 40 * 0.25 + microdata 6
        assert result.score.score == 16
        assert any("og:description" in issue for issue in result.score.issues)


class TestContentClarity:
    def test_exactly_40_chars_scores_zero(self):
        page = ParsedPage(paragraphs=["a" * 40])
        result = analyze_content_clarity(page)
        assert result.score.score == 0
        assert len(result.score.issues) == 1
        assert len(result.actionable_items) == 1
        assert result.actionable_items[0].priority == "high"

    def test_readable_text_scores_well(self, rich_page):
        assert analyze_content_clarity(rich_page).score.score >= 50

    @pytest.mark.parametrize("fk,expected", [
        (75, 100),
        (60, 100),
        (50, 75),
        (40, 50),
        (30, 35),
        (10, 10),
    ])
    def test_readability_bands(self, fk, expected):
        assert readability_to_score(fk) == expected

    def test_sentence_length_bands(self):
        assert sentence_length_to_score(15) == 100
        assert sentence_length_to_score(32) == 60
        assert sentence_length_to_score(60) == 0

    def test_jargon_bands(self):
        assert jargon_to_score(0.5) == 100
        assert jargon_to_score(1.5) == 60
        assert jargon_to_score(10) == 0


class TestCitationMarkers:
    def test_rich_page(self, rich_page):
        assert analyze_citation_markers(rich_page).score.score == 100

    def test_nothing_present(self, empty_page):
        # source refs 20 * 0.20 + footnotes 20 * 0.15
        result = analyze_citation_markers(empty_page)
        assert result.score.score == 7
        assert any(item.priority == "high" and "date" in item.issue for item in result.actionable_items)

    def test_visible_date_only(self):
        page = ParsedPage(text_content="Published: 12 Jan 2024 by the team")
        result = analyze_citation_markers(page)
        assert any("visible text" in d for d in result.score.details)

    def test_byline_only(self):
        page = ParsedPage(text_content="Written by: Alice")
        result = analyze_citation_markers(page)
        assert any("byline" in d for d in result.score.details)


class TestFactualDensity:
    def test_too_little_text(self):
        page = ParsedPage(total_text_length=49)
        result = analyze_factual_density(page)
        assert result.score.score == 0
        assert result.actionable_items[0].priority == "high"

    def test_low_content_ratio(self):
        text = "word " * 200
        page = ParsedPage(
            paragraphs=[text.strip()],
            text_content=text.strip(),
            total_text_length=1000,
            main_text_length=100,
        )
        result = analyze_factual_density(page)
        assert any("Only 10%" in item.issue for item in result.actionable_items)

    def test_duplicate_paragraphs_flagged(self):
        para = "The plant produced 500 units in 2022 and 700 units in 2023."
        page = ParsedPage(
            paragraphs=[para, para, para, "Something else entirely with 3 facts, 4 and 5."],
            text_content=" ".join([para] * 3),
            total_text_length=400,
            main_text_length=400,
        )
        result = analyze_factual_density(page)
        assert any("boilerplate" in issue for issue in result.score.issues)
