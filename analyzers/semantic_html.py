# analyzers/semantic_html.py

from __future__ import annotations

from typing import List

from models.heuristics_models import ActionableItem, AnalyzerResult, HeuristicScore
from models.page_models import ParsedPage
from services.numeric import round_half_up, weighted_score

CATEGORY = "Semantic HTML"

# ============================================================
# 重み・しきい値
# ============================================================

WEIGHTS = {
    "headings": 0.25,
    "landmarks": 0.25,
    "semantic_ratio": 0.20,
    "lists": 0.15,
    "tables": 0.15,
}

EXPECTED_LANDMARKS = ["nav", "main", "header", "footer"]

# semantic 比率 40% 以上で満点（ratio * 250）
SEMANTIC_RATIO_MULTIPLIER = 250
LOW_SEMANTIC_RATIO = 0.15

NO_CONTAINER_SCORE = 50
NO_LIST_SCORE = 30


def _score_headings(page: ParsedPage, details: List[str], issues: List[str], items: List[ActionableItem]) -> int:
    """見出し階層: h1 が1つ / レベル飛びなし / 3階層以上 の3点で採点する。"""
    headings = page.headings
    if not headings:
        issues.append("No headings found on the page")
        items.append(ActionableItem(
            priority="high",
            category=CATEGORY,
            issue="Page has no heading elements",
            recommendation="Add a clear heading hierarchy starting with a single <h1> for the page title",
            code_example="<h1>Page Title</h1>\n<h2>Section</h2>\n<h3>Subsection</h3>",
        ))
        return 0

    score = 0
    h1_count = sum(1 for h in headings if h.level == 1)
    if h1_count == 1:
        score += 40
        details.append("Single <h1> found")
    elif h1_count == 0:
        issues.append("No <h1> element found")
        items.append(ActionableItem(
            priority="high",
            category=CATEGORY,
            issue="Missing <h1> element",
            recommendation="Add exactly one <h1> element as the page title",
        ))
    else:
        score += 15
        issues.append(f"Multiple <h1> elements found ({h1_count})")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue=f"{h1_count} <h1> elements found, should be exactly one",
            recommendation="Use a single <h1> for the main title; demote others to <h2>",
        ))

    # h1 → h3 のような飛びがないか
    has_skips = any(
        headings[i].level > headings[i - 1].level + 1 for i in range(1, len(headings))
    )
    if not has_skips:
        score += 40
        details.append("Heading hierarchy has no skipped levels")
    else:
        score += 10
        issues.append("Heading levels are skipped (e.g., h1 → h3)")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue="Heading hierarchy skips levels",
            recommendation="Ensure headings follow sequential order without skipping levels",
        ))

    unique_levels = {h.level for h in headings}
    if len(unique_levels) >= 3:
        score += 20
        details.append(f"{len(unique_levels)} heading levels used")
    else:
        score += 10

    return min(100, score)


def _score_landmarks(page: ParsedPage, details: List[str], issues: List[str], items: List[ActionableItem]) -> int:
    landmark_tags = {lm.tag for lm in page.landmarks}
    found = [tag for tag in EXPECTED_LANDMARKS if tag in landmark_tags]

    if len(found) == len(EXPECTED_LANDMARKS):
        details.append("All key landmarks present (nav, main, header, footer)")
    else:
        missing = [tag for tag in EXPECTED_LANDMARKS if tag not in landmark_tags]
        issues.append(f"Missing landmark elements: {', '.join(missing)}")
        if "main" not in landmark_tags:
            items.append(ActionableItem(
                priority="high",
                category=CATEGORY,
                issue="No <main> landmark found",
                recommendation="Wrap primary content in a <main> element",
                code_example="<main>\n  <!-- primary page content -->\n</main>",
            ))

    return round_half_up(len(found) / len(EXPECTED_LANDMARKS) * 100)


def _score_semantic_ratio(page: ParsedPage, details: List[str], items: List[ActionableItem]) -> int:
    total_semantic = sum(e.count for e in page.semantic_elements)
    total_containers = total_semantic + page.div_count

    # コンテナ要素が1つもない場合は中立
    if total_containers == 0:
        return NO_CONTAINER_SCORE

    ratio = total_semantic / total_containers
    details.append(
        f"Semantic-to-div ratio: {round_half_up(ratio * 100)}% "
        f"({total_semantic} semantic, {page.div_count} divs)"
    )
    if ratio < LOW_SEMANTIC_RATIO:
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue="Very low semantic element usage compared to <div>s",
            recommendation="Replace generic <div> wrappers with semantic elements like <section>, <article>, <aside>",
        ))
    return min(100, round_half_up(ratio * SEMANTIC_RATIO_MULTIPLIER))


def _score_lists(page: ParsedPage, details: List[str]) -> int:
    # リストが不要なページもあるので、無くても強くは減点しない
    if not page.lists:
        return NO_LIST_SCORE

    score = 60
    if any(lst.tag == "dl" for lst in page.lists):
        score += 20
        details.append("Definition lists (<dl>) used")
    if any(lst.item_count >= 3 for lst in page.lists):
        score += 20
        details.append("Meaningful list structures found")
    return min(100, score)


def _score_tables(page: ParsedPage, details: List[str], items: List[ActionableItem]) -> int:
    # テーブルが無ければ満点扱い
    if not page.tables:
        return 100

    points = 0
    for table in page.tables:
        if table.has_head:
            points += 40
        if table.has_body:
            points += 30
        if table.has_scope_headers:
            points += 30
    score = round_half_up(points / len(page.tables))
    details.append(f"{len(page.tables)} table(s) found")

    if score < 70:
        items.append(ActionableItem(
            priority="low",
            category=CATEGORY,
            issue="Tables missing proper semantic markup",
            recommendation="Add <thead>, <tbody>, and scope attributes to <th> elements",
            code_example=(
                '<table>\n  <thead><tr><th scope="col">Header</th></tr></thead>\n'
                "  <tbody><tr><td>Data</td></tr></tbody>\n</table>"
            ),
        ))
    return score


def analyze_semantic_html(page: ParsedPage) -> AnalyzerResult:
    """
    セマンティック HTML の品質を採点する。

    - 見出し階層 (25%)
    - ランドマーク要素 (25%)
    - semantic / div 比率 (20%)
    - リスト構造 (15%)
    - テーブルのセマンティクス (15%)
    """
    details: List[str] = []
    issues: List[str] = []
    items: List[ActionableItem] = []

    parts = {
        "headings": _score_headings(page, details, issues, items),
        "landmarks": _score_landmarks(page, details, issues, items),
        "semantic_ratio": _score_semantic_ratio(page, details, items),
        "lists": _score_lists(page, details),
        "tables": _score_tables(page, details, items),
    }

    return AnalyzerResult(
        score=HeuristicScore(score=weighted_score(parts, WEIGHTS), details=details, issues=issues),
        actionable_items=items,
    )
