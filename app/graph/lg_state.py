# app/graph/lg_state.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from services.embedding_client import EmbeddingClient


class GraphState(Dict[str, Any]):
    """
    LangGraph 風の「状態」コンテナ。
    実体はただの dict だが、型ヒントとして分かりやすくするためのラッパ。
    """
    pass


def create_initial_state(
    urls: List[str],
    embedder: EmbeddingClient,
    fetcher: Optional[Callable[[str], str]] = None,
    batch_size: int = 10,
    batch_delay: float = 0.5,
) -> GraphState:
    """
    ワークフロー開始時の初期 state を作成。
    外部クライアント（埋め込み・取得）もここで state に載せ、各ノードへ渡す。
    """
    state: GraphState = GraphState()
    state["urls"] = list(urls)
    state["embedder"] = embedder
    state["fetcher"] = fetcher
    state["batch_size"] = batch_size
    state["batch_delay"] = batch_delay
    state["progress_messages"] = []  # 各ノードからのログ的メッセージ
    state["current_node"] = None
    return state
