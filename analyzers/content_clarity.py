# analyzers/content_clarity.py

from __future__ import annotations

from typing import List

from models.heuristics_models import ActionableItem, AnalyzerResult, HeuristicScore
from models.page_models import ParsedPage
from services.numeric import round_half_up, weighted_score
from services.text_metrics import (
    average_sentence_length,
    flesch_kincaid_grade_level,
    flesch_kincaid_reading_ease,
    get_words,
    jargon_density,
)

CATEGORY = "Content Clarity"

WEIGHTS = {
    "readability": 0.30,
    "sentence_length": 0.25,
    "paragraphs": 0.20,
    "jargon": 0.25,
}

MIN_TEXT_CHARS = 50

IDEAL_SENTENCE_MIN = 12
IDEAL_SENTENCE_MAX = 22
LONG_SENTENCE_WARNING = 25

IDEAL_PARAGRAPH_MIN = 30
IDEAL_PARAGRAPH_MAX = 120
LONG_PARAGRAPH_WORDS = 150


def readability_to_score(fk: float) -> float:
    """Flesch-Kincaid の値を 0〜100 のサブスコアに区分線形で写像する。"""
    if fk >= 60:
        return 100
    if fk >= 40:
        return 50 + (fk - 40) * 2.5
    if fk >= 20:
        return 20 + (fk - 20) * 1.5
    return fk


def sentence_length_to_score(avg_len: float) -> float:
    if IDEAL_SENTENCE_MIN <= avg_len <= IDEAL_SENTENCE_MAX:
        return 100
    if avg_len < IDEAL_SENTENCE_MIN:
        return 60 + avg_len * 3.3
    # 長い文は 1語ごとに -4
    return max(0, 100 - (avg_len - IDEAL_SENTENCE_MAX) * 4)


def jargon_to_score(jargon: float) -> float:
    if jargon <= 0.5:
        return 100
    if jargon <= 2:
        return 80 - (jargon - 0.5) * 20
    return max(0, 50 - (jargon - 2) * 16)


def analyze_content_clarity(page: ParsedPage) -> AnalyzerResult:
    """
    本文の読みやすさを採点する。

    - Flesch-Kincaid Reading Ease (30%)
    - 平均文長 (25%)
    - 段落の長さの分布 (20%)
    - 硬い言い回しの密度 (25%)

    段落テキストが 50 文字未満なら評価不能として 0 点を返す。
    """
    details: List[str] = []
    issues: List[str] = []
    items: List[ActionableItem] = []

    full_text = " ".join(page.paragraphs)

    if len(full_text) < MIN_TEXT_CHARS:
        return AnalyzerResult(
            score=HeuristicScore(
                score=0,
                details=["Insufficient text content to analyze"],
                issues=["Page has very little paragraph text"],
            ),
            actionable_items=[ActionableItem(
                priority="high",
                category=CATEGORY,
                issue="Page has almost no paragraph text content",
                recommendation="Add substantive paragraph content to improve LLM extractability",
            )],
        )

    # ---------- Flesch-Kincaid ----------
    fk = flesch_kincaid_reading_ease(full_text)
    readability_score = readability_to_score(fk)
    details.append(f"Flesch-Kincaid Reading Ease: {fk}")
    details.append(f"Flesch-Kincaid Grade Level: {flesch_kincaid_grade_level(full_text)}")

    if fk < 40:
        issues.append(f"Low readability score ({fk}), content is difficult to read")
        items.append(ActionableItem(
            priority="high",
            category=CATEGORY,
            issue=f"Flesch-Kincaid score of {fk} indicates very difficult reading level",
            recommendation="Simplify sentence structure and use shorter, more common words",
        ))

    # ---------- 平均文長 ----------
    avg_sentence = average_sentence_length(full_text)
    sentence_score = sentence_length_to_score(avg_sentence)
    details.append(f"Average sentence length: {avg_sentence} words")

    if avg_sentence > LONG_SENTENCE_WARNING:
        issues.append(f"Average sentence length is {avg_sentence} words, too long")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue=f"Average sentence length of {avg_sentence} words exceeds recommended 20 words",
            recommendation="Break long sentences into shorter ones for better comprehension and LLM extraction",
        ))

    # ---------- 段落の長さ ----------
    paragraph_score = 0.0
    if not page.paragraphs:
        issues.append("No paragraphs found")
    else:
        word_counts = [len(get_words(p)) for p in page.paragraphs]
        avg_para = sum(word_counts) / len(word_counts)
        long_paras = sum(1 for c in word_counts if c > LONG_PARAGRAPH_WORDS)

        details.append(f"{len(page.paragraphs)} paragraphs, avg {round_half_up(avg_para)} words each")

        if IDEAL_PARAGRAPH_MIN <= avg_para <= IDEAL_PARAGRAPH_MAX:
            paragraph_score = 100
        elif avg_para < IDEAL_PARAGRAPH_MIN:
            paragraph_score = 60
        else:
            paragraph_score = max(20, 100 - (avg_para - IDEAL_PARAGRAPH_MAX))

        if long_paras > 0:
            paragraph_score = max(0, paragraph_score - long_paras * 10)
            issues.append(f"{long_paras} paragraph(s) exceed {LONG_PARAGRAPH_WORDS} words")
            items.append(ActionableItem(
                priority="low",
                category=CATEGORY,
                issue=f"{long_paras} very long paragraph(s) found",
                recommendation=f"Break paragraphs longer than {LONG_PARAGRAPH_WORDS} words into smaller chunks",
            ))

    # ---------- 硬い言い回し ----------
    jargon = jargon_density(full_text)
    jargon_score = jargon_to_score(jargon)
    details.append(f"Jargon density: {jargon} per 100 words")

    if jargon > 2:
        issues.append(f"High jargon density: {jargon} per 100 words")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue=f"Jargon density of {jargon} per 100 words is high",
            recommendation="Replace formal/bureaucratic terms with plain language equivalents",
        ))

    parts = {
        "readability": readability_score,
        "sentence_length": sentence_score,
        "paragraphs": paragraph_score,
        "jargon": jargon_score,
    }
    return AnalyzerResult(
        score=HeuristicScore(score=weighted_score(parts, WEIGHTS), details=details, issues=issues),
        actionable_items=items,
    )
