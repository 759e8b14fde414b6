# models/heuristics_models.py

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# -----------------------------------------
# 改善提案の優先度
# -----------------------------------------
Priority = Literal["high", "medium", "low"]

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


class HeuristicScore(BaseModel):
    """Analyzer 1回分のスコア。生成後は変更しない。

    Attributes:
        score (int): 0〜100 の整数スコア。
        details (List[str]): 人が読める検出結果（順序付き）。
        issues (List[str]): 問題点（順序付き）。
    """
    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0, le=100)
    details: List[str] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)


class ActionableItem(BaseModel):
    """改善アクション1件。

    Attributes:
        priority (Priority): high / medium / low。
        category (str): Analyzer のカテゴリ名（例: "Semantic HTML"）。
        issue (str): 何が問題か。
        recommendation (str): どう直すべきか。
        code_example (str | None): 修正例の HTML スニペット（任意）。
    """

    priority: Priority
    category: str
    issue: str
    recommendation: str
    code_example: Optional[str] = None


class AnalyzerResult(BaseModel):
    score: HeuristicScore
    actionable_items: List[ActionableItem] = Field(default_factory=list)


class HeuristicsResult(BaseModel):
    """5つの Analyzer のスコアと、その平均（overall）。"""

    semantic_html: HeuristicScore
    structured_data: HeuristicScore
    content_clarity: HeuristicScore
    citation_markers: HeuristicScore
    factual_density: HeuristicScore
    overall: int

    def category_scores(self) -> List[int]:
        return [
            self.semantic_html.score,
            self.structured_data.score,
            self.content_clarity.score,
            self.citation_markers.score,
            self.factual_density.score,
        ]


class HeuristicsOutput(BaseModel):
    result: HeuristicsResult
    actionable_items: List[ActionableItem] = Field(default_factory=list)
