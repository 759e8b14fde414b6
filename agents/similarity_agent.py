# agents/similarity_agent.py

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List

from models.similarity_models import (
    Classification,
    ContentPage,
    ContentRelationship,
    IntentCluster,
    PageEmbeddings,
    SimilarityScore,
    SimilaritySummary,
)
from services.embedding_client import MAX_INPUT_CHARS, EmbeddingClient, cosine_similarity
from services.numeric import round_half_up

logger = logging.getLogger(__name__)

# ============================================================
# 分類しきい値
# ============================================================

# 言い換えを挟んだ抽出テキスト向けに調整された値。生テキスト同士の比較では高めに出やすい。
THRESHOLDS: Dict[str, Dict[str, float]] = {
    "definite_duplicate": {"body": 0.78, "title": 0.75},
    "near_duplicate": {"body": 0.70, "intro": 0.65},
    "intent_collision": {"title": 0.70, "body_max": 0.60},
    "potential_cannibalization": {"title": 0.60, "body_min": 0.45, "body_max": 0.65},
    "template_overlap": {"full": 0.75, "body_max": 0.55},
}

RECOMMENDED_ACTIONS: Dict[str, str] = {
    "Definite Duplicate": "Canonicalize, redirect, or remove one URL",
    "Near Duplicate": "Merge content or rewrite to differentiate",
    "Intent Collision": "Clarify intent and differentiate focus",
    "Potential Cannibalization": "Review for keyword cannibalization - consider consolidating or differentiating",
    "Template Overlap": "Reduce boilerplate dominance",
    "Unique": "No action needed",
}


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


# ============================================================
# 埋め込み生成
# ============================================================

def _embed_page(page: ContentPage, embedder: EmbeddingClient) -> ContentPage:
    """1ページ分の4ファセットを同時に埋め込む。"""
    logger.info("[similarity] Generating embeddings for: %s", page.url)

    texts = [
        page.title,
        page.intro_text,
        page.body_text[:MAX_INPUT_CHARS],
        page.full_text()[:MAX_INPUT_CHARS],
    ]
    with ThreadPoolExecutor(max_workers=len(texts), thread_name_prefix="embedding") as pool:
        title, intro, body, full = pool.map(embedder.get_embedding, texts)

    return page.model_copy(
        update={"embeddings": PageEmbeddings(title=title, intro=intro, body=body, full=full)}
    )


def generate_embeddings(pages: List[ContentPage], embedder: EmbeddingClient) -> List[ContentPage]:
    """
    取得に成功したページにだけ埋め込みを付ける。
    fetch_error のあるページはそのまま通す。
    """
    out: List[ContentPage] = []
    for page in pages:
        if page.fetch_error:
            out.append(page)
            continue
        out.append(_embed_page(page, embedder))
    return out


def calculate_similarity_matrix(pages: List[ContentPage]) -> List[SimilarityScore]:
    """
    有効なページの全ペア（i < j）について、ファセットごとのコサイン類似度を計算する。
    """
    valid = [p for p in pages if p.embeddings is not None and not p.fetch_error]
    scores: List[SimilarityScore] = []

    for i in range(len(valid)):
        for j in range(i + 1, len(valid)):
            a, b = valid[i], valid[j]
            ea, eb = a.embeddings, b.embeddings
            scores.append(
                SimilarityScore(
                    url_a=a.url,
                    url_b=b.url,
                    title_similarity=cosine_similarity(ea.title, eb.title),
                    intro_similarity=cosine_similarity(ea.intro, eb.intro),
                    body_similarity=cosine_similarity(ea.body, eb.body),
                    full_similarity=cosine_similarity(ea.full, eb.full),
                )
            )
    return scores


# ============================================================
# 関係分類
# ============================================================

@dataclass(frozen=True)
class _Verdict:
    classification: Classification
    confidence_ratio: float
    reasoning: str


def _decide(score: SimilarityScore) -> _Verdict:
    """上から順に評価し、最初に一致したルールを採用する（順序がそのまま優先度）。"""
    title = score.title_similarity
    intro = score.intro_similarity
    body = score.body_similarity
    full = score.full_similarity

    t = THRESHOLDS["definite_duplicate"]
    if body >= t["body"] and title >= t["title"]:
        return _Verdict(
            "Definite Duplicate",
            (body + title) / 2,
            f"Very high body ({_pct(body)}) and title ({_pct(title)}) similarity indicates duplicate content.",
        )

    t = THRESHOLDS["near_duplicate"]
    if body >= t["body"] and intro >= t["intro"]:
        return _Verdict(
            "Near Duplicate",
            (body + intro) / 2,
            f"High body ({_pct(body)}) and intro ({_pct(intro)}) similarity suggests near-duplicate content.",
        )

    t = THRESHOLDS["intent_collision"]
    if title >= t["title"] and body < t["body_max"]:
        return _Verdict(
            "Intent Collision",
            title,
            f"Similar titles ({_pct(title)}) but different body content ({_pct(body)}) indicates SEO intent collision.",
        )

    t = THRESHOLDS["potential_cannibalization"]
    if title >= t["title"] and t["body_min"] <= body < t["body_max"]:
        return _Verdict(
            "Potential Cannibalization",
            (title + body) / 2,
            f"Moderate title ({_pct(title)}) and body ({_pct(body)}) similarity suggests "
            "these pages may compete for similar keywords.",
        )

    t = THRESHOLDS["template_overlap"]
    if full >= t["full"] and body < t["body_max"]:
        return _Verdict(
            "Template Overlap",
            full,
            f"High full-page similarity ({_pct(full)}) but lower body ({_pct(body)}) "
            "suggests template/navigation overlap.",
        )

    return _Verdict("Unique", 1 - full, "Content is sufficiently different.")


def classify_relationship(score: SimilarityScore) -> ContentRelationship:
    logger.info(
        "[similarity] scores %s vs %s: title=%.3f intro=%.3f body=%.3f full=%.3f",
        score.url_a,
        score.url_b,
        score.title_similarity,
        score.intro_similarity,
        score.body_similarity,
        score.full_similarity,
    )

    verdict = _decide(score)
    confidence = min(100, max(0, round_half_up(verdict.confidence_ratio * 100)))
    logger.info(
        "[similarity] classified %s vs %s as %s (confidence=%d)",
        score.url_a,
        score.url_b,
        verdict.classification,
        confidence,
    )

    return ContentRelationship(
        url_a=score.url_a,
        url_b=score.url_b,
        classification=verdict.classification,
        confidence=confidence,
        similarity_summary=SimilaritySummary(
            title=round_half_up(score.title_similarity, 2),
            intro=round_half_up(score.intro_similarity, 2),
            body=round_half_up(score.body_similarity, 2),
            full=round_half_up(score.full_similarity, 2),
        ),
        recommended_action=RECOMMENDED_ACTIONS[verdict.classification],
        reasoning=verdict.reasoning,
    )


def classify_relationships(scores: List[SimilarityScore]) -> List[ContentRelationship]:
    """ペアごとに1件ずつ関係を分類する（入力順を保つ）。"""
    return [classify_relationship(s) for s in scores]


# ============================================================
# Intent Collision クラスタ
# ============================================================

def identify_intent_clusters(relationships: List[ContentRelationship]) -> List[IntentCluster]:
    """
    Intent Collision で結ばれた URL を無向グラフとみなし、連結成分ごとにクラスタ化する。

    - 隣接リストは登場順を保つ（結果の順序が入力順で決まるように）
    - primary_url は BFS の開始ノード、cluster_urls は残りを訪問順に並べたもの
    - 要素数 1 の成分はクラスタにしない
    """
    adjacency: Dict[str, Dict[str, None]] = {}
    for rel in relationships:
        if rel.classification != "Intent Collision":
            continue
        adjacency.setdefault(rel.url_a, {})[rel.url_b] = None
        adjacency.setdefault(rel.url_b, {})[rel.url_a] = None

    visited: set = set()
    clusters: List[IntentCluster] = []

    for start in adjacency:
        if start in visited:
            continue

        component: List[str] = []
        queue: deque = deque([start])
        visited.add(start)
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        if len(component) < 2:
            continue

        clusters.append(
            IntentCluster(
                primary_url=component[0],
                cluster_urls=component[1:],
                reasoning=(
                    f"{len(component)} URLs are competing for similar search intent. "
                    "Consider consolidating or differentiating."
                ),
            )
        )

    logger.info("[similarity] intent clusters=%d", len(clusters))
    return clusters
