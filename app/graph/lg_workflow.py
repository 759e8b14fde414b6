# app/graph/lg_workflow.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from app.config import Settings, get_settings
from app.graph.lg_state import GraphState, create_initial_state
from app.graph import nodes
from models.similarity_models import ContentPage, ContentSimilarityResult
from services.embedding_client import EmbeddingClient

logger = logging.getLogger(__name__)


def run_workflow(
    urls: List[str],
    embedder: EmbeddingClient,
    fetcher: Optional[Callable[[str], str]] = None,
    settings: Optional[Settings] = None,
) -> GraphState:
    """
    /api/simitrack/analyze 用のシンプルな直列ワークフロー。

    fetch → embedding → similarity → classify → cluster
    """
    settings = settings or get_settings()
    logger.info("[lg_workflow] run_workflow start urls=%d", len(urls))

    state = create_initial_state(
        urls=urls,
        embedder=embedder,
        fetcher=fetcher,
        batch_size=settings.fetch_batch_size,
        batch_delay=settings.fetch_batch_delay_seconds,
    )

    # 1) ページ取得 → ContentPage
    state = nodes.fetch_node(state)

    # 2) 4ファセットの埋め込み
    state = nodes.embedding_node(state)

    # 3) ペアごとの類似度
    state = nodes.similarity_node(state)

    # 4) 関係分類
    state = nodes.classify_node(state)

    # 5) Intent Collision クラスタ
    state = nodes.cluster_node(state)

    logger.info(
        "[lg_workflow] run_workflow done urls=%d current_node=%s",
        len(urls),
        state.get("current_node"),
    )
    return state


def analyze_urls(
    urls: List[str],
    embedder: EmbeddingClient,
    fetcher: Optional[Callable[[str], str]] = None,
    settings: Optional[Settings] = None,
) -> ContentSimilarityResult:
    """ワークフローを実行し、API レスポンス用の結果にまとめる。"""
    state = run_workflow(urls, embedder, fetcher=fetcher, settings=settings)

    pages: List[ContentPage] = state.get("pages", [])
    failed_urls = [p.url for p in pages if p.fetch_error]

    return ContentSimilarityResult(
        relationships=state.get("relationships", []),
        intent_collision_clusters=state.get("intent_collision_clusters", []),
        pages_analyzed=len(pages) - len(failed_urls),
        pages_failed=len(failed_urls),
        failed_urls=failed_urls or None,
    )
