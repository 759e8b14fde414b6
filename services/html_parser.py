# services/html_parser.py

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from models.page_models import (
    HeadingNode,
    Landmark,
    LinkInfo,
    ListInfo,
    MicrodataItem,
    ParsedPage,
    SemanticElementCount,
    TableInfo,
)
from services.text_metrics import split_sentences

logger = logging.getLogger(__name__)

LANDMARK_TAGS = ["nav", "main", "aside", "footer", "header", "section", "article"]
SEMANTIC_TAGS = [
    "article", "section", "aside", "nav", "header", "footer", "main",
    "figure", "figcaption", "details", "summary", "mark", "time", "address",
    "blockquote", "cite", "code", "pre", "dl", "dt", "dd",
]

NAV_SELECTOR = 'nav, header, footer, [role="navigation"], [role="banner"], [role="contentinfo"]'
MAIN_SELECTOR = 'main, [role="main"], article'


def _build_heading_nodes(soup: BeautifulSoup) -> List[HeadingNode]:
    """
    h1〜h6 を文書順の HeadingNode リストとして生成する。
    Analyzer はここから階層の飛びや h1 の数を判定する。
    """
    nodes: List[HeadingNode] = []
    for tag in soup.find_all(re.compile(r"^h[1-6]$")):
        nodes.append(HeadingNode(level=int(tag.name[1]), text=tag.get_text().strip()))
    return nodes


def _build_landmarks(soup: BeautifulSoup) -> List[Landmark]:
    landmarks: List[Landmark] = []
    for tag in LANDMARK_TAGS:
        for el in soup.find_all(tag):
            landmarks.append(Landmark(tag=tag, role=el.get("role")))

    # div などに role="..." が付いているケースも拾う
    for el in soup.find_all(attrs={"role": True}):
        if el.name not in LANDMARK_TAGS and el.get("role"):
            landmarks.append(Landmark(tag=el.name, role=el.get("role")))
    return landmarks


def _extract_json_ld(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    """
    application/ld+json を全て読み込む。
    壊れた JSON は無視し、トップレベルが配列の場合は中の dict を展開する。
    """
    blocks: List[Dict[str, Any]] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text() or ""
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("[html_parser] skip malformed JSON-LD block")
            continue

        if isinstance(data, list):
            blocks.extend(item for item in data if isinstance(item, dict))
        elif isinstance(data, dict):
            blocks.append(data)
    return blocks


def _is_external(href: str, base_url: Optional[str]) -> bool:
    if not (href.startswith("http://") or href.startswith("https://")):
        return False
    if not base_url:
        return True
    try:
        return urlparse(href).hostname != urlparse(base_url).hostname
    except ValueError:
        return False


def _text_length(soup: BeautifulSoup, selector: str) -> int:
    return sum(len(el.get_text().strip()) for el in soup.select(selector))


def parse_html(html: str, base_url: Optional[str] = None) -> ParsedPage:
    """
    HTML文字列を解析して ParsedPage を生成する。
    ※ ここではネットワークアクセスは行わない（fetch_html で取得済み前提）
    """
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""

    headings = _build_heading_nodes(soup)
    landmarks = _build_landmarks(soup)

    semantic_elements = []
    for tag in SEMANTIC_TAGS:
        count = len(soup.find_all(tag))
        if count > 0:
            semantic_elements.append(SemanticElementCount(tag=tag, count=count))

    div_count = len(soup.find_all("div"))

    lists: List[ListInfo] = []
    for el in soup.find_all(["ul", "ol", "dl"]):
        child = "dt" if el.name == "dl" else "li"
        lists.append(ListInfo(tag=el.name, item_count=len(el.find_all(child, recursive=False))))

    tables = [
        TableInfo(
            has_head=table.find("thead") is not None,
            has_body=table.find("tbody") is not None,
            has_scope_headers=table.select_one("th[scope]") is not None,
        )
        for table in soup.find_all("table")
    ]

    json_ld = _extract_json_ld(soup)
    microdata = [
        MicrodataItem(type=el.get("itemtype") or "")
        for el in soup.find_all(attrs={"itemtype": True})
    ]

    open_graph: Dict[str, str] = {}
    for el in soup.find_all("meta", attrs={"property": re.compile(r"^og:")}):
        content = el.get("content")
        if content:
            open_graph[el["property"]] = content

    meta_tags: Dict[str, str] = {}
    for el in soup.find_all("meta", attrs={"name": True}):
        content = el.get("content")
        if el["name"] and content:
            meta_tags[el["name"]] = content

    links = []
    for a in soup.find_all("a", href=True):
        href = a.get("href") or ""
        links.append(LinkInfo(href=href, text=a.get_text().strip(), is_external=_is_external(href, base_url)))

    # ----- ここから本文テキスト系（script/style は除去してから） -----
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    paragraphs = [p.get_text().strip() for p in soup.find_all("p")]
    paragraphs = [p for p in paragraphs if p]

    body = soup.body or soup
    text_content = re.sub(r"\s+", " ", body.get_text()).strip()

    sentences = split_sentences(" ".join(paragraphs))

    nav_text_length = _text_length(soup, NAV_SELECTOR)
    if soup.select(MAIN_SELECTOR):
        main_text_length = _text_length(soup, MAIN_SELECTOR)
    else:
        main_text_length = len(text_content) - nav_text_length

    return ParsedPage(
        html=html,
        title=title,
        headings=headings,
        landmarks=landmarks,
        semantic_elements=semantic_elements,
        div_count=div_count,
        lists=lists,
        tables=tables,
        json_ld=json_ld,
        microdata=microdata,
        open_graph=open_graph,
        meta_tags=meta_tags,
        links=links,
        paragraphs=paragraphs,
        sentences=sentences,
        text_content=text_content,
        nav_text_length=nav_text_length,
        main_text_length=main_text_length,
        total_text_length=len(text_content),
    )
