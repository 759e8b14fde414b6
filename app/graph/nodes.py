# app/graph/nodes.py
from __future__ import annotations

import logging
from typing import List

from app.graph.lg_state import GraphState
from agents.content_agent import fetch_multiple_pages
from agents.similarity_agent import (
    calculate_similarity_matrix,
    classify_relationships,
    generate_embeddings,
    identify_intent_clusters,
)
from models.similarity_models import ContentPage, ContentRelationship, SimilarityScore

logger = logging.getLogger(__name__)


def _log_progress(state: GraphState, node: str, message: str) -> GraphState:
    """
    LangGraph 用の進捗ログを state に積むユーティリティ。
    state は dict (GraphState) として扱う。
    """
    line = f"[{node}] {message}"

    messages: List[str] = list(state.get("progress_messages", []))
    messages.append(line)

    state["progress_messages"] = messages
    state["current_node"] = node

    logger.info(line)
    return state


# ---------- Fetch ノード ----------


def fetch_node(state: GraphState) -> GraphState:
    """
    URL 群から比較用のテキスト（title / h1 / intro / body）を取得する。
    失敗した URL も fetch_error 付きで残す（件数集計に使う）。
    """
    urls: List[str] = state["urls"]
    state = _log_progress(state, "fetch", f"start: fetching {len(urls)} URLs")

    pages = fetch_multiple_pages(
        urls,
        batch_size=state.get("batch_size", 10),
        delay=state.get("batch_delay", 0.5),
        fetcher=state.get("fetcher"),
    )
    state["pages"] = pages

    failed = sum(1 for p in pages if p.fetch_error)
    state = _log_progress(state, "fetch", f"done: fetched={len(pages) - failed} failed={failed}")
    return state


# ---------- Embedding ノード ----------


def embedding_node(state: GraphState) -> GraphState:
    state = _log_progress(state, "embedding", "start: generating embeddings")

    pages: List[ContentPage] = state.get("pages", [])
    state["pages"] = generate_embeddings(pages, state["embedder"])

    state = _log_progress(state, "embedding", "done: embeddings generated")
    return state


# ---------- Similarity ノード ----------


def similarity_node(state: GraphState) -> GraphState:
    state = _log_progress(state, "similarity", "start: calculating similarity matrix")

    scores = calculate_similarity_matrix(state.get("pages", []))
    state["similarity_scores"] = scores

    state = _log_progress(state, "similarity", f"done: pairs={len(scores)}")
    return state


# ---------- Classify ノード ----------


def classify_node(state: GraphState) -> GraphState:
    state = _log_progress(state, "classify", "start: classifying relationships")

    scores: List[SimilarityScore] = state.get("similarity_scores", [])
    relationships = classify_relationships(scores)
    state["relationships"] = relationships

    state = _log_progress(state, "classify", f"done: relationships={len(relationships)}")
    return state


# ---------- Cluster ノード ----------


def cluster_node(state: GraphState) -> GraphState:
    """Intent Collision のペアを連結成分ごとにまとめる。"""
    state = _log_progress(state, "cluster", "start: identifying intent clusters")

    relationships: List[ContentRelationship] = state.get("relationships", [])
    clusters = identify_intent_clusters(relationships)
    state["intent_collision_clusters"] = clusters

    state = _log_progress(state, "cluster", f"done: clusters={len(clusters)}")
    return state
