# services/crawler.py

import requests

DEFAULT_HEADERS = {
    "User-Agent": "llm-readability-advisor/0.1 (+dev)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

ACCEPTED_CONTENT_TYPES = ("html", "xml", "text/plain")


def fetch_html(url: str, timeout: float = 15.0) -> str:
    """
    単純な GET だけのクロール。リトライは入れていない。
    HTML 以外（画像や PDF など）が返ってきた場合は ValueError。
    """
    resp = requests.get(url, headers=DEFAULT_HEADERS, timeout=timeout)
    resp.raise_for_status()

    content_type = resp.headers.get("Content-Type", "")
    if not any(t in content_type for t in ACCEPTED_CONTENT_TYPES):
        raise ValueError(f"Unexpected content type: {content_type}")

    return resp.text
