# services/llm_client.py
from __future__ import annotations

import logging
from typing import Optional

from openai import OpenAI

from app.config import Settings

logger = logging.getLogger(__name__)


def build_judge_client(settings: Settings) -> Optional[OpenAI]:
    """
    LLM ジャッジ（Claude / GPT / Gemini）用のクライアントを作る。
    OpenRouter は OpenAI 互換 API なので、base_url を差し替えるだけで使える。

    OPENROUTER_API_KEY が無い場合は None（ジャッジはスキップ扱い）。
    プロセス起動時に1回だけ呼び、各エージェントへは引数で渡す。
    """
    if not settings.openrouter_api_key:
        logger.warning("[llm_client] OPENROUTER_API_KEY が未設定のため LLM ジャッジは無効です")
        return None
    return OpenAI(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        timeout=settings.judge_timeout_seconds,
        max_retries=0,
    )


def build_embedding_client(settings: Settings) -> Optional[OpenAI]:
    """埋め込み API 用の OpenAI クライアント。OPENAI_API_KEY が無ければ None。"""
    if not settings.openai_api_key:
        logger.warning("[llm_client] OPENAI_API_KEY が未設定のため埋め込みは無効です")
        return None
    return OpenAI(api_key=settings.openai_api_key, max_retries=0)
