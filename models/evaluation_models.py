# models/evaluation_models.py

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel

from models.heuristics_models import ActionableItem, HeuristicsResult
from models.llm_models import LLMResults


ScoreComposition = Literal["heuristics_only", "blended"]


class EvaluationMetadata(BaseModel):
    """
    評価1回分のメタ情報。
    """
    url: Optional[str] = None
    filename: Optional[str] = None

    # ISO8601 形式の実行時刻
    analyzed_at: str
    analysis_duration_ms: int

    llm_enabled: bool = False
    llm_models_succeeded: int = 0

    # heuristics_only / blended
    score_composition: ScoreComposition = "heuristics_only"


class EvaluationResult(BaseModel):
    """
    最終出力。ヒューリスティクス（＋任意で LLM）を合成した総合スコア。
    """
    overall_score: int
    heuristics: HeuristicsResult
    llm_evaluations: LLMResults
    actionable_items: List[ActionableItem] = []
    metadata: EvaluationMetadata
