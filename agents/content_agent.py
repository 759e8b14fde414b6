# agents/content_agent.py

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

from models.similarity_models import ContentPage
from services.crawler import fetch_html

logger = logging.getLogger(__name__)

INTRO_PARAGRAPHS = 3
INTRO_MAX_WORDS = 500
BODY_MAX_WORDS = 2000

# 本文抽出の前に落とすタグ（ナビやスクリプトは比較のノイズになる）
NOISE_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "aside", "form"]

Fetcher = Callable[[str], str]


def _limit_words(text: str, max_words: int) -> str:
    words = text.split()
    return " ".join(words[:max_words])


def extract_page_content(url: str, html: str) -> ContentPage:
    """
    HTML から比較用の4要素（title / h1 / intro / body）を取り出す。

    - intro: 先頭3段落（最大500語）
    - body: 本文の全段落（最大2000語）
    段落が1つも無いページは、本文テキスト全体で代用する。
    """
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text().strip() if soup.title else ""
    h1_tag = soup.find("h1")
    h1 = h1_tag.get_text().strip() if h1_tag else ""

    for tag in soup.find_all(NOISE_TAGS):
        tag.decompose()

    root = soup.find("main") or soup.find("article") or soup.body or soup
    paragraphs = [
        p.get_text(" ", strip=True)
        for p in root.find_all("p")
        if p.get_text(strip=True)
    ]
    if not paragraphs:
        fallback = root.get_text(" ", strip=True)
        paragraphs = [fallback] if fallback else []

    intro_text = _limit_words(" ".join(paragraphs[:INTRO_PARAGRAPHS]), INTRO_MAX_WORDS)
    body_text = _limit_words(" ".join(paragraphs), BODY_MAX_WORDS)

    return ContentPage(url=url, title=title, h1=h1, intro_text=intro_text, body_text=body_text)


def fetch_page_content(url: str, fetcher: Optional[Fetcher] = None) -> ContentPage:
    """
    URL 1件分を取得して ContentPage にする。
    取得・抽出に失敗しても例外は投げず、fetch_error に理由を入れて返す。
    """
    fetcher = fetcher or fetch_html
    try:
        logger.info(f"[content_agent] Fetching content from: {url}")
        html = fetcher(url)
        page = extract_page_content(url, html)
        logger.info(
            f"[content_agent] Extracted: {url} "
            f"(title={page.title!r}, body_words={len(page.body_text.split())})"
        )
        return page
    except Exception as e:  # noqa: BLE001
        logger.warning(f"[content_agent] Failed to fetch {url}: {e}")
        return ContentPage(url=url, fetch_error=str(e) or e.__class__.__name__)


def fetch_multiple_pages(
    urls: List[str],
    batch_size: int = 10,
    delay: float = 0.5,
    fetcher: Optional[Fetcher] = None,
) -> List[ContentPage]:
    """
    batch_size 件ずつ並列に取得し、バッチの間に delay 秒空ける。
    戻り値の順序は入力 URL の順序と同じ。
    """
    batch_size = max(1, batch_size)
    results: List[ContentPage] = []

    for start in range(0, len(urls), batch_size):
        batch = urls[start:start + batch_size]
        logger.info(f"[content_agent] Fetching batch {start // batch_size + 1}: {len(batch)} URLs")

        with ThreadPoolExecutor(max_workers=len(batch), thread_name_prefix="content_fetch") as pool:
            # map は入力順で結果を返す
            results.extend(pool.map(lambda u: fetch_page_content(u, fetcher), batch))

        if start + batch_size < len(urls) and delay > 0:
            time.sleep(delay)

    return results
