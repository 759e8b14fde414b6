# app/main.py
import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI

from app.api.routes import router as api_router
from app.config import get_settings
from services.crawler import fetch_html
from services.embedding_client import EmbeddingClient
from services.llm_client import build_embedding_client, build_judge_client


def _configure_logging(level: str) -> None:
    """コンソールに1つだけハンドラを付ける（uvicorn の reload で重複しないように）。"""
    root = logging.getLogger()
    if not any(getattr(h, "_advisor_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handler._advisor_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    外部 API クライアントは起動時に1回だけ作り、app.state 経由で各エンドポイントに渡す。
    """
    settings = get_settings()
    _configure_logging(settings.log_level)

    app.state.settings = settings
    app.state.judge_client = build_judge_client(settings)
    app.state.embedder = EmbeddingClient(build_embedding_client(settings), model=settings.embedding_model)
    app.state.fetcher = partial(fetch_html, timeout=settings.fetch_timeout_seconds)

    logging.getLogger(__name__).info(
        "[main] startup judge=%s embedding=%s",
        "ON" if app.state.judge_client else "OFF",
        settings.embedding_model if settings.openai_api_key else "OFF",
    )
    yield


app = FastAPI(title="LLM Readability Advisor", lifespan=lifespan)

app.include_router(api_router, prefix="/api")
