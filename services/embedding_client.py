# services/embedding_client.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
from openai import OpenAI

logger = logging.getLogger(__name__)

# 埋め込み API に渡す最大文字数
MAX_INPUT_CHARS = 8000


class EmbeddingClient:
    """
    テキスト → 埋め込みベクトルの薄いラッパ。
    失敗時は例外を投げずに空リストを返す（呼び出し側は「比較対象なし」として扱う）。
    """

    def __init__(self, client: Optional[OpenAI], model: str = "text-embedding-3-large"):
        self._client = client
        self.model = model

    def get_embedding(self, text: str) -> List[float]:
        if not text or not text.strip():
            return []
        if self._client is None:
            logger.warning("[embedding] OPENAI_API_KEY not set, returning empty embedding")
            return []

        try:
            response = self._client.embeddings.create(
                model=self.model,
                input=text[:MAX_INPUT_CHARS],
            )
            return list(response.data[0].embedding)
        except Exception as e:  # noqa: BLE001
            logger.warning("[embedding] request failed: %s", e)
            return []


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    コサイン類似度。
    どちらかが空 / 次元が違う / ノルムが 0 の場合は 0 を返す。
    """
    if not a or not b or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    denominator = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denominator == 0:
        return 0.0
    return float(np.dot(va, vb) / denominator)
