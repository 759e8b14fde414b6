# agents/heuristics_agent.py

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from analyzers.citation_markers import analyze_citation_markers
from analyzers.content_clarity import analyze_content_clarity
from analyzers.factual_density import analyze_factual_density
from analyzers.semantic_html import analyze_semantic_html
from analyzers.structured_data import analyze_structured_data
from models.heuristics_models import (
    PRIORITY_RANK,
    ActionableItem,
    AnalyzerResult,
    HeuristicScore,
    HeuristicsOutput,
    HeuristicsResult,
)
from models.page_models import ParsedPage
from services.numeric import round_half_up

logger = logging.getLogger(__name__)

# ============================================================
# Analyzer 一覧
# ============================================================

# (HeuristicsResult のフィールド名, Analyzer 関数)
# 改善アクションはこの順で連結してから優先度でソートする
ANALYZERS: List[Tuple[str, Callable[[ParsedPage], AnalyzerResult]]] = [
    ("semantic_html", analyze_semantic_html),
    ("structured_data", analyze_structured_data),
    ("content_clarity", analyze_content_clarity),
    ("citation_markers", analyze_citation_markers),
    ("factual_density", analyze_factual_density),
]


# ============================================================
# ユーティリティ
# ============================================================

def compute_overall(scores: Sequence[int]) -> int:
    """各カテゴリスコアの平均を四捨五入する。"""
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def sort_by_priority(items: Sequence[ActionableItem]) -> List[ActionableItem]:
    """high → medium → low の順に並べる（同じ優先度内の順序は保つ）。"""
    return sorted(items, key=lambda item: PRIORITY_RANK[item.priority])


# ============================================================
# メインロジック
# ============================================================

def run_heuristics(page: ParsedPage) -> HeuristicsOutput:
    """
    5つの Analyzer をすべて実行して、スコアと改善アクションをまとめる。

    - 各 Analyzer は ParsedPage を読むだけの純粋関数なので、実行順に依存しない
    - overall は 5スコアの平均（四捨五入）
    - 改善アクションは全 Analyzer 分を連結し、優先度で安定ソート
    """
    scores: Dict[str, HeuristicScore] = {}
    all_items: List[ActionableItem] = []

    for key, analyzer in ANALYZERS:
        result = analyzer(page)
        scores[key] = result.score
        all_items.extend(result.actionable_items)
        logger.debug("[heuristics] %s score=%s items=%d", key, result.score.score, len(result.actionable_items))

    overall = compute_overall([s.score for s in scores.values()])

    logger.info(
        "[heuristics] overall=%s scores=%s",
        overall,
        {k: s.score for k, s in scores.items()},
    )

    return HeuristicsOutput(
        result=HeuristicsResult(overall=overall, **scores),
        actionable_items=sort_by_priority(all_items),
    )
