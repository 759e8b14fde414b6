# app/config.py

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    アプリ全体で使う設定クラス。
    .env から環境変数を読み込み、属性として参照できるようにする。
    """

    # ---------- LLM ジャッジ（OpenRouter） ----------
    # OPENROUTER_API_KEY=sk-or-... を .env に書く想定
    # 未設定なら LLM 評価はスキップされ、ヒューリスティクスのみで採点する
    openrouter_api_key: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # 3つのジャッジ。.env の JUDGE_MODEL_GPT=... などで上書きできる
    judge_model_claude: str = "anthropic/claude-4.5-sonnet"
    judge_model_gpt: str = "openai/gpt-5.1-chat"
    judge_model_gemini: str = "google/gemini-3-flash-preview"

    # 1リクエストあたりの上限秒数（リトライはしない）
    judge_timeout_seconds: float = 30.0

    # ---------- 埋め込み（OpenAI） ----------
    openai_api_key: str | None = None
    embedding_model: str = "text-embedding-3-large"

    # ---------- ページ取得 ----------
    fetch_timeout_seconds: float = 15.0
    # 外部 API のレート制限対策として、10件ずつ取得し 0.5 秒空ける
    fetch_batch_size: int = 10
    fetch_batch_delay_seconds: float = 0.5

    # ---------- ログ ----------
    log_level: str = "INFO"

    # ---------- Pydantic Settings 設定 ----------
    model_config = SettingsConfigDict(
        env_file=".env",            # .env を読む
        env_file_encoding="utf-8",
        extra="ignore",             # 定義外の環境変数があっても無視（エラーにしない）
    )


@lru_cache
def get_settings() -> Settings:
    """Settings をシングルトン的に使うためのヘルパ。"""
    return Settings()


# 他のモジュールからは `from app.config import settings` で利用
settings = get_settings()
