# app/api/routes.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import requests
from fastapi import APIRouter, Depends, HTTPException, Request
from openai import OpenAI
from pydantic import BaseModel

from agents.scoring_agent import evaluate
from app.config import Settings, get_settings
from app.graph.lg_workflow import analyze_urls
from models.evaluation_models import EvaluationResult
from models.similarity_models import ContentSimilarityResult
from services.crawler import fetch_html
from services.embedding_client import EmbeddingClient
from services.html_parser import parse_html

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_URLS = 2
MAX_URLS = 50


# --------- Request / Response モデル ---------


class AnalyzeUrlRequest(BaseModel):
    url: Optional[str] = None
    include_llm: bool = False


class AnalyzeHtmlRequest(BaseModel):
    html: Optional[str] = None
    filename: Optional[str] = None
    include_llm: bool = False


class SimiTrackAnalyzeRequest(BaseModel):
    urls: Optional[List[str]] = None


class SimiTrackResponse(BaseModel):
    success: bool
    data: ContentSimilarityResult


class SimiTrackStatusResponse(BaseModel):
    success: bool
    data: Dict[str, Any]


# --------- 依存関係（起動時に app.state に載せたクライアント） ---------


def get_judge_client(request: Request) -> Optional[OpenAI]:
    return getattr(request.app.state, "judge_client", None)


def get_embedder(request: Request) -> EmbeddingClient:
    embedder = getattr(request.app.state, "embedder", None)
    return embedder if embedder is not None else EmbeddingClient(None)


def get_fetcher(request: Request) -> Callable[[str], str]:
    return getattr(request.app.state, "fetcher", None) or fetch_html


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# --------- LLM 可読性評価 ---------


@router.post("/analyze-url", response_model=EvaluationResult)
def api_analyze_url(
    payload: AnalyzeUrlRequest,
    judge_client: Optional[OpenAI] = Depends(get_judge_client),
    fetcher: Callable[[str], str] = Depends(get_fetcher),
) -> EvaluationResult:
    """
    URL を取得してページを評価する。
    include_llm=True のときだけ LLM ジャッジも実行し、スコアを合成する。
    """
    url = (payload.url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail='Missing or invalid "url" in request body')
    if not _is_valid_url(url):
        raise HTTPException(status_code=400, detail="Invalid URL format")

    logger.info("[api.analyze-url] url=%s include_llm=%s", url, payload.include_llm)

    try:
        html = fetcher(url)
    except (requests.RequestException, ValueError) as e:
        logger.warning("[api.analyze-url] fetch failed url=%s error=%s", url, e)
        raise HTTPException(status_code=502, detail=f"Failed to fetch URL: {e}") from e

    page = parse_html(html, base_url=url)
    return evaluate(page, include_llm=payload.include_llm, judge_client=judge_client, url=url)


@router.post("/analyze-html", response_model=EvaluationResult)
def api_analyze_html(
    payload: AnalyzeHtmlRequest,
    judge_client: Optional[OpenAI] = Depends(get_judge_client),
) -> EvaluationResult:
    """アップロードされた HTML 文字列をそのまま評価する。"""
    if not payload.html or not payload.html.strip():
        raise HTTPException(status_code=400, detail='Missing "html" in request body')

    logger.info(
        "[api.analyze-html] filename=%s size=%d include_llm=%s",
        payload.filename,
        len(payload.html),
        payload.include_llm,
    )

    page = parse_html(payload.html)
    return evaluate(
        page,
        include_llm=payload.include_llm,
        judge_client=judge_client,
        filename=payload.filename,
    )


# --------- コンテンツ類似度（SimiTrack） ---------


@router.post("/simitrack/analyze", response_model=SimiTrackResponse)
def api_simitrack_analyze(
    payload: SimiTrackAnalyzeRequest,
    embedder: EmbeddingClient = Depends(get_embedder),
    fetcher: Callable[[str], str] = Depends(get_fetcher),
    settings: Settings = Depends(get_app_settings),
) -> SimiTrackResponse:
    """
    URL 群の重複・カニバリゼーションを判定する。

    1) 取得 → 2) 埋め込み → 3) 類似度 → 4) 分類 → 5) クラスタ
    """
    urls = payload.urls or []
    if len(urls) < MIN_URLS:
        raise HTTPException(status_code=400, detail="At least 2 URLs are required")
    if len(urls) > MAX_URLS:
        raise HTTPException(status_code=400, detail="Maximum 50 URLs per request")

    valid_urls = [u for u in urls if isinstance(u, str) and u.startswith("http")]
    if len(valid_urls) < MIN_URLS:
        raise HTTPException(
            status_code=400,
            detail="At least 2 valid URLs (starting with http) are required",
        )

    logger.info("[api.simitrack] start urls=%d", len(valid_urls))

    try:
        result = analyze_urls(valid_urls, embedder, fetcher=fetcher, settings=settings)
    except Exception as e:  # noqa: BLE001
        logger.exception("[api.simitrack] analysis failed")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {e}") from e

    logger.info(
        "[api.simitrack] done analyzed=%d failed=%d relationships=%d",
        result.pages_analyzed,
        result.pages_failed,
        len(result.relationships),
    )
    return SimiTrackResponse(success=True, data=result)


@router.get("/simitrack/status", response_model=SimiTrackStatusResponse)
def api_simitrack_status() -> SimiTrackStatusResponse:
    return SimiTrackStatusResponse(
        success=True,
        data={"ready": True, "message": "SimiTrack content similarity service is ready"},
    )
