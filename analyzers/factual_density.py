# analyzers/factual_density.py

from __future__ import annotations

import re
from typing import List

from models.heuristics_models import ActionableItem, AnalyzerResult, HeuristicScore
from models.page_models import ParsedPage
from services.numeric import round_half_up, weighted_score
from services.text_metrics import get_words

CATEGORY = "Factual Density"

WEIGHTS = {
    "content_ratio": 0.30,
    "filler": 0.25,
    "fact_signals": 0.25,
    "boilerplate": 0.20,
}

MIN_TEXT_CHARS = 50

# 中身のない言い回し
FILLER_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bvery\b", r"\breally\b", r"\bjust\b", r"\bbasically\b",
        r"\bactually\b", r"\bliterally\b", r"\bin order to\b",
        r"\bat the end of the day\b", r"\bgoing forward\b",
        r"\bit is important to note\b", r"\bit should be noted\b",
        r"\bneedless to say\b", r"\bas a matter of fact\b",
        r"\bin terms of\b", r"\bwith regard to\b",
        r"\bat this point in time\b", r"\bdue to the fact that\b",
    )
]

NUMBER_RE = re.compile(r"\b\d[\d,.]*\b")
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

# 官公庁系ページによくある定型文
BOILERPLATE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"skip to (main )?content",
        r"all rights reserved",
        r"privacy policy",
        r"terms (of use|and conditions)",
        r"cookie (policy|notice|consent)",
        r"copyright ©",
        r"follow us on",
        r"sign up for (our )?newsletter",
        r"subscribe to",
    )
]
BOILERPLATE_HEAVY = 5
BOILERPLATE_SOME = 2
DUPLICATE_PARAGRAPH_RATIO = 0.2


def _per_100_words(count: int, word_count: int) -> float:
    if word_count == 0:
        return 0
    return round_half_up(count / word_count * 100, 2)


def analyze_factual_density(page: ParsedPage) -> AnalyzerResult:
    """
    情報密度を採点する。

    - 本文 / ナビゲーション比率 (30%)
    - フィラー表現の密度 (25%)
    - 数値・年号などの事実シグナル密度 (25%)
    - 定型文・重複段落 (20%)
    """
    details: List[str] = []
    issues: List[str] = []
    items: List[ActionableItem] = []

    if page.total_text_length < MIN_TEXT_CHARS:
        return AnalyzerResult(
            score=HeuristicScore(
                score=0,
                details=["Insufficient text content"],
                issues=["Page has very little text"],
            ),
            actionable_items=[ActionableItem(
                priority="high",
                category=CATEGORY,
                issue="Page has almost no text content",
                recommendation="Add substantive content to improve LLM value",
            )],
        )

    # ---------- 本文比率 ----------
    ratio = page.main_text_length / page.total_text_length
    ratio_pct = round_half_up(ratio * 100)
    if ratio >= 0.6:
        content_ratio_score = 100
        details.append(f"Content-to-total ratio: {ratio_pct}%")
    elif ratio >= 0.4:
        content_ratio_score = 60 + (ratio - 0.4) * 200
        details.append(f"Content-to-total ratio: {ratio_pct}%")
    else:
        content_ratio_score = round_half_up(ratio * 150)
        issues.append(f"Low content-to-navigation ratio: {ratio_pct}%")
        items.append(ActionableItem(
            priority="high",
            category=CATEGORY,
            issue=f"Only {ratio_pct}% of page text is main content",
            recommendation="Reduce navigation/boilerplate text or increase substantive content",
        ))

    # ---------- フィラー表現 ----------
    paragraph_text = " ".join(page.paragraphs)
    word_count = len(get_words(paragraph_text))

    filler_count = sum(len(p.findall(paragraph_text)) for p in FILLER_PATTERNS)
    filler = _per_100_words(filler_count, word_count)
    if filler <= 1:
        filler_score = 100
    elif filler <= 3:
        filler_score = 70
    else:
        filler_score = max(0, 50 - (filler - 3) * 10)
    details.append(f"Filler phrases: {filler} per 100 words")

    if filler > 3:
        issues.append(f"High filler phrase density: {filler} per 100 words")
        items.append(ActionableItem(
            priority="low",
            category=CATEGORY,
            issue="Content contains excessive filler phrases",
            recommendation="Remove vague qualifiers and filler phrases to increase information density",
        ))

    # ---------- 事実シグナル（数値・年号） ----------
    fact_count = len(NUMBER_RE.findall(paragraph_text)) + len(YEAR_RE.findall(paragraph_text))
    facts = _per_100_words(fact_count, word_count)
    if facts >= 3:
        fact_score = 100
    elif facts >= 1:
        fact_score = 50 + facts * 25
    else:
        fact_score = round_half_up(facts * 50)
    details.append(f"Factual signals (numbers/dates): {facts} per 100 words")

    # ---------- 定型文・重複段落 ----------
    boilerplate_count = sum(len(p.findall(page.text_content)) for p in BOILERPLATE_PATTERNS)
    if page.paragraphs:
        unique = {p.lower().strip() for p in page.paragraphs}
        dupe_ratio = 1 - len(unique) / len(page.paragraphs)
    else:
        dupe_ratio = 0

    if boilerplate_count > BOILERPLATE_HEAVY or dupe_ratio > DUPLICATE_PARAGRAPH_RATIO:
        boilerplate_score = 30
        issues.append("Significant boilerplate or duplicate content detected")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue="Page contains significant boilerplate content",
            recommendation="Use <main> to clearly delineate primary content from boilerplate",
        ))
    elif boilerplate_count > BOILERPLATE_SOME:
        boilerplate_score = 60
        details.append("Some standard boilerplate detected")
    else:
        boilerplate_score = 100
        details.append("Low boilerplate content")

    parts = {
        "content_ratio": content_ratio_score,
        "filler": filler_score,
        "fact_signals": fact_score,
        "boilerplate": boilerplate_score,
    }
    return AnalyzerResult(
        score=HeuristicScore(score=weighted_score(parts, WEIGHTS), details=details, issues=issues),
        actionable_items=items,
    )
