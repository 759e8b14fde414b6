# models/llm_models.py

from __future__ import annotations

import math
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.numeric import clamp_score


def _validate_numeric_score(value: Any) -> int:
    """
    LLM が返したスコアを検証して 0〜100 の整数に丸める。
    数値以外（文字列 / bool / null）や NaN・Infinity は不正として弾く。
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("score must be a number")
    if not math.isfinite(value):
        raise ValueError("score must be a finite number")
    return clamp_score(value)


# -----------------------------------------
# 評価軸ごとのスコア
# -----------------------------------------
class DimensionScore(BaseModel):
    """1評価軸分のスコアとコメント。

    Attributes:
        score (int): 0〜100 に丸め済みのスコア。
        notes (str): 評価理由の短い説明（欠けていても可）。
    """
    model_config = ConfigDict(extra="ignore")

    score: int
    notes: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _check_score(cls, v: Any) -> int:
        return _validate_numeric_score(v)

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


# -----------------------------------------
# モデル1つ分の判定結果
# -----------------------------------------
class LLMEvaluation(BaseModel):
    """LLM ジャッジ1モデル分の評価。

    5つの評価軸と overall_score は必須。どれか1つでも欠ければ
    検証エラーになり、そのモデルの回答は丸ごと不採用になる。
    """
    model_config = ConfigDict(extra="ignore")

    extractability: DimensionScore
    citation_worthiness: DimensionScore
    query_relevance: DimensionScore
    structure_quality: DimensionScore
    authority_signals: DimensionScore
    overall_score: int
    improvements: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)

    @field_validator("overall_score", mode="before")
    @classmethod
    def _check_overall(cls, v: Any) -> int:
        return _validate_numeric_score(v)

    @field_validator("improvements", "examples", mode="before")
    @classmethod
    def _coerce_text_list(cls, v: Any) -> List[str]:
        # 配列でなければ空扱い（ここで不採用にはしない）
        if not isinstance(v, list):
            return []
        return [x if isinstance(x, str) else str(x) for x in v]


DIMENSIONS = (
    "extractability",
    "citation_worthiness",
    "query_relevance",
    "structure_quality",
    "authority_signals",
)


# -----------------------------------------
# 検証結果（タグ付き）
# -----------------------------------------
class JudgeAccepted(BaseModel):
    status: Literal["accepted"] = "accepted"
    model: str
    evaluation: LLMEvaluation


class JudgeRejected(BaseModel):
    status: Literal["rejected"] = "rejected"
    model: str
    reason: str


class LLMResults(BaseModel):
    """3つのジャッジ結果と、その合意スコア（平均）。"""

    claude: Optional[LLMEvaluation] = None
    gpt: Optional[LLMEvaluation] = None
    gemini: Optional[LLMEvaluation] = None
    consensus_score: Optional[int] = None

    def succeeded_count(self) -> int:
        return sum(1 for e in (self.claude, self.gpt, self.gemini) if e is not None)
