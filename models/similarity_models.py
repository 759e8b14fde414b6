# models/similarity_models.py

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


# -----------------------------------------
# ページ間の関係分類（6種類・固定）
# -----------------------------------------
Classification = Literal[
    "Definite Duplicate",
    "Near Duplicate",
    "Intent Collision",
    "Potential Cannibalization",
    "Template Overlap",
    "Unique",
]


class PageEmbeddings(BaseModel):
    """4つのファセット（title / intro / body / full）それぞれの埋め込みベクトル。
    取得に失敗したファセットは空リストになる。"""

    title: List[float] = Field(default_factory=list)
    intro: List[float] = Field(default_factory=list)
    body: List[float] = Field(default_factory=list)
    full: List[float] = Field(default_factory=list)


class ContentPage(BaseModel):
    """
    URL 1件分の取得結果。
    取得に失敗した場合は fetch_error にメッセージが入り、以降の比較対象から外れる。
    """
    url: str
    title: str = ""
    h1: str = ""
    intro_text: str = ""
    body_text: str = ""
    embeddings: Optional[PageEmbeddings] = None
    fetch_error: Optional[str] = None

    def full_text(self) -> str:
        return f"{self.title} {self.h1} {self.intro_text} {self.body_text}"


class SimilarityScore(BaseModel):
    """ページペア（i < j）ごとの4ファセットのコサイン類似度。"""

    url_a: str
    url_b: str
    title_similarity: float
    intro_similarity: float
    body_similarity: float
    full_similarity: float


class SimilaritySummary(BaseModel):
    # 小数2桁に丸めた値
    title: float
    intro: float
    body: float
    full: float


class ContentRelationship(BaseModel):
    url_a: str
    url_b: str
    classification: Classification
    confidence: int = Field(..., ge=0, le=100)
    similarity_summary: SimilaritySummary
    recommended_action: str
    reasoning: str


class IntentCluster(BaseModel):
    """Intent Collision で連結されたページ群。"""

    primary_url: str
    cluster_urls: List[str] = Field(default_factory=list)
    reasoning: str


class ContentSimilarityResult(BaseModel):
    relationships: List[ContentRelationship] = Field(default_factory=list)
    intent_collision_clusters: List[IntentCluster] = Field(default_factory=list)
    pages_analyzed: int = 0
    pages_failed: int = 0
    failed_urls: Optional[List[str]] = None
