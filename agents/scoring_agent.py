# agents/scoring_agent.py

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Optional, Tuple

from openai import OpenAI

from agents.heuristics_agent import run_heuristics
from agents.llm_judge_agent import evaluate_with_judges
from models.evaluation_models import EvaluationMetadata, EvaluationResult, ScoreComposition
from models.llm_models import LLMResults
from models.page_models import ParsedPage
from services.numeric import round_half_up

logger = logging.getLogger(__name__)

# ヒューリスティクスと LLM 合意スコアの配分
HEURISTIC_WEIGHT = 0.5
LLM_WEIGHT = 0.5


def blend_scores(
    heuristic: int,
    consensus: Optional[int],
    include_llm: bool,
) -> Tuple[int, ScoreComposition]:
    """
    最終スコアを決める。
    LLM 評価を要求していない / 合意スコアが取れなかった場合はヒューリスティクスをそのまま使う。
    """
    if not include_llm or consensus is None:
        return heuristic, "heuristics_only"
    return round_half_up(heuristic * HEURISTIC_WEIGHT + consensus * LLM_WEIGHT), "blended"


def evaluate(
    page: ParsedPage,
    include_llm: bool = False,
    judge_client: Optional[OpenAI] = None,
    url: Optional[str] = None,
    filename: Optional[str] = None,
) -> EvaluationResult:
    """
    1ページ分の評価を実行する。

    Phase 1: ヒューリスティクス（同期・純粋関数）
    Phase 2: LLM ジャッジ（include_llm=True のときだけ）
    Phase 3: スコア合成
    """
    started = time.perf_counter()

    heuristics = run_heuristics(page)

    if include_llm:
        llm_results = evaluate_with_judges(page, judge_client)
    else:
        llm_results = LLMResults()

    overall, composition = blend_scores(
        heuristics.result.overall,
        llm_results.consensus_score,
        include_llm,
    )

    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "[scoring] overall=%s composition=%s duration_ms=%d target=%s",
        overall,
        composition,
        duration_ms,
        url or filename or "-",
    )

    return EvaluationResult(
        overall_score=overall,
        heuristics=heuristics.result,
        llm_evaluations=llm_results,
        actionable_items=heuristics.actionable_items,
        metadata=EvaluationMetadata(
            url=url,
            filename=filename,
            analyzed_at=datetime.now(timezone.utc).isoformat(),
            analysis_duration_ms=duration_ms,
            llm_enabled=include_llm,
            llm_models_succeeded=llm_results.succeeded_count() if include_llm else 0,
            score_composition=composition,
        ),
    )
