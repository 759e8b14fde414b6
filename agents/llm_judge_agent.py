# agents/llm_judge_agent.py

from __future__ import annotations

import json
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Dict, List, Optional, Union

from openai import APITimeoutError, OpenAI
from pydantic import ValidationError

from app.config import settings
from models.llm_models import DIMENSIONS, JudgeAccepted, JudgeRejected, LLMEvaluation, LLMResults
from models.page_models import ParsedPage
from services.content_condenser import condense_page
from services.numeric import round_half_up

logger = logging.getLogger(__name__)

# ============================================================
# パラメータ
# ============================================================

TEMPERATURE = 0.1
MAX_TOKENS = 1024

JudgeResult = Union[JudgeAccepted, JudgeRejected]


def default_judge_models() -> Dict[str, str]:
    """LLMResults のフィールド名 → OpenRouter のモデル ID。"""
    return {
        "claude": settings.judge_model_claude,
        "gpt": settings.judge_model_gpt,
        "gemini": settings.judge_model_gemini,
    }


# ============================================================
# プロンプト
# ============================================================

SYSTEM_PROMPT = """
You are an expert evaluator of web content for LLM readability and discoverability. Your task is to evaluate how effectively a large language model can extract information from, understand, and cite this web content.

Evaluate the content across 5 dimensions, scoring each 0-100:

1. **extractability**: How easily can an LLM extract key facts, data points, and claims from this content? Consider clear structure, labeled sections, explicit statements.

2. **citation_worthiness**: How well does this content support being cited as a source? Consider author attribution, dates, specificity of claims, presence of data or statistics.

3. **query_relevance**: How likely is this content to be surfaced for user queries? Consider topical focus, comprehensive coverage, keyword clarity, and question-answering potential.

4. **structure_quality**: How well-organized is the content for machine parsing? Consider heading hierarchy, semantic HTML indicators, logical flow, consistent formatting.

5. **authority_signals**: How much does the content signal expertise and trustworthiness? Consider author credentials, organizational backing, references, data sources, publication context.

Respond ONLY with valid JSON matching this exact structure (no markdown, no explanation):
{
  "extractability": { "score": <number 0-100>, "notes": "<brief explanation>" },
  "citation_worthiness": { "score": <number 0-100>, "notes": "<brief explanation>" },
  "query_relevance": { "score": <number 0-100>, "notes": "<brief explanation>" },
  "structure_quality": { "score": <number 0-100>, "notes": "<brief explanation>" },
  "authority_signals": { "score": <number 0-100>, "notes": "<brief explanation>" },
  "overall_score": <number 0-100>,
  "improvements": ["<suggestion 1>", "<suggestion 2>", ...],
  "examples": ["<specific example from content>", ...]
}
""".strip()


def build_user_prompt(condensed_content: str) -> str:
    return (
        "Evaluate the following web page content for LLM readability and discoverability:\n\n"
        f"{condensed_content}"
    )


# ============================================================
# レスポンス検証
# ============================================================

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """```json ... ``` で囲まれて返ってきた場合に中身だけ取り出す。"""
    return _FENCE_END_RE.sub("", _FENCE_START_RE.sub("", text.strip())).strip()


def parse_judgment(content: str, model: str) -> JudgeResult:
    """
    LLM の生テキストを検証し、JudgeAccepted / JudgeRejected のどちらかを返す。

    - JSON として読めない → 不採用
    - 5つの評価軸のどれかが欠けている / score が数値でない → 不採用
    - overall_score が無い / 数値でない → 不採用
    部分的に信用することはしない（1項目でも不正なら丸ごと捨てる）。
    """
    try:
        data = json.loads(strip_code_fences(content))
    except ValueError as e:
        return JudgeRejected(model=model, reason=f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return JudgeRejected(model=model, reason="top-level JSON is not an object")

    try:
        evaluation = LLMEvaluation.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        return JudgeRejected(model=model, reason=f"schema validation failed: {fields}")

    return JudgeAccepted(model=model, evaluation=evaluation)


def compute_consensus(scores: List[int]) -> Optional[int]:
    """成功したジャッジの overall_score の平均。1件も無ければ None。"""
    if not scores:
        return None
    return round_half_up(sum(scores) / len(scores))


# ============================================================
# LLM 呼び出し
# ============================================================

def _call_judge(client: OpenAI, model: str, user_prompt: str, timeout: float) -> Optional[LLMEvaluation]:
    """
    ジャッジ1モデル分の呼び出し。
    失敗・タイムアウト・不正なレスポンスはすべて None にして返す（例外は外に出さない）。
    """
    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
            timeout=timeout,
        )
    except APITimeoutError:
        logger.warning("[llm_judge] model=%s timed out after %ss", model, timeout)
        return None
    except Exception as e:  # noqa: BLE001
        logger.warning("[llm_judge] model=%s call failed: %s", model, e)
        return None

    content = response.choices[0].message.content if response.choices else None
    if not content:
        logger.warning("[llm_judge] model=%s no content in response", model)
        return None

    judged = parse_judgment(content, model)
    if isinstance(judged, JudgeRejected):
        logger.warning("[llm_judge] model=%s response rejected: %s", model, judged.reason)
        return None

    logger.info("[llm_judge] model=%s overall_score=%s", model, judged.evaluation.overall_score)
    logger.debug(
        "[llm_judge] model=%s dimensions=%s",
        model,
        {d: getattr(judged.evaluation, d).score for d in DIMENSIONS},
    )
    return judged.evaluation


# ============================================================
# 公開関数
# ============================================================

def evaluate_with_judges(
    page: ParsedPage,
    client: Optional[OpenAI],
    models: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> LLMResults:
    """
    3つのジャッジに同時に問い合わせ、合意スコアを計算する。

    - client が None（APIキー未設定）の場合はスキップして全 null を返す
    - 各呼び出しは独立しており、1つ失敗しても他は止めない
    - 全呼び出しの完了（成功 or 失敗）を待ってから集計する。ただし timeout 秒の締め切りを
      過ぎても返ってこないジャッジは失敗扱いにして待たない
    """
    if client is None:
        logger.warning("[llm_judge] OPENROUTER_API_KEY not set, skipping LLM evaluation")
        return LLMResults()

    models = models or default_judge_models()
    timeout = timeout if timeout is not None else settings.judge_timeout_seconds
    user_prompt = build_user_prompt(condense_page(page))

    logger.info("[llm_judge] fan-out start models=%s", list(models.values()))

    # SDK の timeout は接続・読み取りごとの上限なので、全体の締め切りはここで切る
    deadline = time.monotonic() + timeout
    evaluations: Dict[str, Optional[LLMEvaluation]] = {}
    pool = ThreadPoolExecutor(max_workers=len(models), thread_name_prefix="llm_judge")
    try:
        futures = {
            key: pool.submit(_call_judge, client, model, user_prompt, timeout)
            for key, model in models.items()
        }
        for key, future in futures.items():
            remaining = max(0.0, deadline - time.monotonic())
            try:
                evaluations[key] = future.result(timeout=remaining)
            except FutureTimeoutError:
                logger.warning("[llm_judge] model=%s timed out after %ss", models[key], timeout)
                evaluations[key] = None
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    scores = [e.overall_score for e in evaluations.values() if e is not None]
    results = LLMResults(**evaluations, consensus_score=compute_consensus(scores))

    logger.info(
        "[llm_judge] fan-out done succeeded=%d consensus=%s",
        results.succeeded_count(),
        results.consensus_score,
    )
    return results
