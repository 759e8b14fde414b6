"""
Tests for judge response validation and the concurrent judge panel.
"""

import json
import time

import httpx
import pytest
from openai import APITimeoutError

from agents.llm_judge_agent import (
    SYSTEM_PROMPT,
    compute_consensus,
    evaluate_with_judges,
    parse_judgment,
    strip_code_fences,
)
from conftest import FakeJudgeClient, make_judgment
from models.llm_models import JudgeAccepted, JudgeRejected
from models.page_models import HeadingNode, ParsedPage
from services.content_condenser import condense_page


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```  ') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences(' {"a": 1} ') == '{"a": 1}'


class TestParseJudgment:
    """A response is accepted whole or rejected whole."""

    def test_valid(self, valid_judgment_json):
        result = parse_judgment(valid_judgment_json(82), "m")
        assert isinstance(result, JudgeAccepted)
        assert result.evaluation.overall_score == 82
        assert result.evaluation.structure_quality.score == 85

    def test_fenced(self, valid_judgment_json):
        result = parse_judgment(f"```json\n{valid_judgment_json()}\n```", "m")
        assert isinstance(result, JudgeAccepted)

    def test_missing_dimension_score_rejects_everything(self):
        payload = make_judgment()
        payload["structure_quality"] = {"notes": "no score here"}
        result = parse_judgment(json.dumps(payload), "m")
        assert isinstance(result, JudgeRejected)
        assert "structure_quality" in result.reason

    def test_missing_dimension_rejected(self):
        payload = make_judgment()
        del payload["authority_signals"]
        assert isinstance(parse_judgment(json.dumps(payload), "m"), JudgeRejected)

    def test_missing_overall_rejected(self):
        payload = make_judgment()
        del payload["overall_score"]
        assert isinstance(parse_judgment(json.dumps(payload), "m"), JudgeRejected)

    @pytest.mark.parametrize("bad", ["90", True, None, [90]])
    def test_non_numeric_score_rejected(self, bad):
        payload = make_judgment()
        payload["extractability"] = {"score": bad, "notes": ""}
        assert isinstance(parse_judgment(json.dumps(payload), "m"), JudgeRejected)

    def test_non_finite_score_rejected(self):
        text = json.dumps(make_judgment()).replace('"overall_score": 80', '"overall_score": NaN')
        assert isinstance(parse_judgment(text, "m"), JudgeRejected)

    def test_scores_are_clamped_and_rounded(self):
        payload = make_judgment(overall=150)
        payload["query_relevance"] = {"score": 72.5, "notes": "x"}
        payload["authority_signals"] = {"score": -3}
        result = parse_judgment(json.dumps(payload), "m")
        assert isinstance(result, JudgeAccepted)
        assert result.evaluation.overall_score == 100
        assert result.evaluation.query_relevance.score == 73
        assert result.evaluation.authority_signals.score == 0
        assert result.evaluation.authority_signals.notes == ""

    def test_non_list_improvements_become_empty(self):
        payload = make_judgment(improvements="add tables", examples=[1, "two"])
        result = parse_judgment(json.dumps(payload), "m")
        assert result.evaluation.improvements == []
        assert result.evaluation.examples == ["1", "two"]

    def test_not_json(self):
        result = parse_judgment("I think this page is great!", "m")
        assert isinstance(result, JudgeRejected)

    def test_top_level_array(self):
        assert isinstance(parse_judgment("[1, 2, 3]", "m"), JudgeRejected)


class TestConsensus:
    def test_mean_of_present(self):
        assert compute_consensus([80, 61]) == 71

    def test_single(self):
        assert compute_consensus([64]) == 64

    def test_none_succeeded(self):
        assert compute_consensus([]) is None


class TestEvaluateWithJudges:
    def test_no_client_skips(self):
        results = evaluate_with_judges(ParsedPage(), None)
        assert results.claude is None and results.gpt is None and results.gemini is None
        assert results.consensus_score is None

    def test_all_succeed(self, rich_page, judge_models, valid_judgment_json):
        client = FakeJudgeClient({
            "test/claude": valid_judgment_json(90),
            "test/gpt": valid_judgment_json(70),
            "test/gemini": valid_judgment_json(81),
        })
        results = evaluate_with_judges(rich_page, client, models=judge_models, timeout=5)

        assert results.succeeded_count() == 3
        assert results.consensus_score == 80
        assert len(client.calls) == 3

    def test_partial_failures_do_not_cancel_siblings(self, rich_page, judge_models, valid_judgment_json):
        timeout = APITimeoutError(request=httpx.Request("POST", "https://openrouter.test/chat"))
        client = FakeJudgeClient({
            "test/claude": timeout,
            "test/gpt": "not json at all",
            "test/gemini": valid_judgment_json(66),
        })
        results = evaluate_with_judges(rich_page, client, models=judge_models, timeout=5)

        assert results.claude is None
        assert results.gpt is None
        assert results.gemini is not None
        assert results.consensus_score == 66

    def test_all_fail(self, rich_page, judge_models):
        client = FakeJudgeClient({
            "test/claude": RuntimeError("boom"),
            "test/gpt": None,
            "test/gemini": "{}",
        })
        results = evaluate_with_judges(rich_page, client, models=judge_models, timeout=5)

        assert results.succeeded_count() == 0
        assert results.consensus_score is None

    def test_slow_judge_is_cut_off_at_deadline(self, rich_page, judge_models, valid_judgment_json):
        client = FakeJudgeClient(
            {m: valid_judgment_json(60) for m in judge_models.values()},
            delays={"test/gpt": 1.5},
        )
        started = time.monotonic()
        results = evaluate_with_judges(rich_page, client, models=judge_models, timeout=0.3)
        elapsed = time.monotonic() - started

        assert elapsed < 1.0
        assert results.gpt is None
        assert results.claude is not None and results.gemini is not None
        assert results.consensus_score == 60

    def test_request_shape(self, rich_page, judge_models, valid_judgment_json):
        client = FakeJudgeClient({m: valid_judgment_json() for m in judge_models.values()})
        evaluate_with_judges(rich_page, client, models=judge_models, timeout=7)

        call = client.calls[0]
        assert call["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert "How Solar Panels Work" in call["messages"][1]["content"]
        assert call["temperature"] == 0.1
        assert call["timeout"] == 7


class TestCondensePage:
    def test_sections(self, rich_page):
        text = condense_page(rich_page)
        assert text.startswith("=== PAGE IDENTITY ===")
        assert "=== HEADING OUTLINE (4 total) ===" in text
        assert "JSON-LD types" in text
        assert "=== STATS ===" in text

    def test_length_ceiling(self):
        page = ParsedPage(
            title="Big",
            paragraphs=["lorem ipsum dolor sit amet " * 40] * 200,
            headings=[HeadingNode(level=2, text=f"Section {i}") for i in range(100)],
        )
        text = condense_page(page)
        assert len(text) <= 12_000
        assert "Section 29" in text
        assert "Section 30" not in text
