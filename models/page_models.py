# models/page_models.py

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HeadingNode(BaseModel):
    """
    見出し1件（h1〜h6）。
    - level: 見出しレベル (1〜6)
    - text: 見出しのテキスト
    """
    model_config = ConfigDict(frozen=True)

    level: int
    text: str


class Landmark(BaseModel):
    """ランドマーク要素（nav / main など）。role 属性があれば保持する。"""
    model_config = ConfigDict(frozen=True)

    tag: str
    role: Optional[str] = None


class SemanticElementCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str
    count: int


class ListInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str          # ul / ol / dl
    item_count: int   # li（dl の場合は dt）の直下要素数


class TableInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_head: bool
    has_body: bool
    has_scope_headers: bool


class MicrodataItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str


class LinkInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    href: str
    text: str
    is_external: bool


class ParsedPage(BaseModel):
    """
    1ページ分の構造化ビュー。
    HTML パーサが1回だけ生成し、各 Analyzer からは読み取り専用で参照される。
    """
    model_config = ConfigDict(frozen=True)

    html: str = ""
    title: str = ""

    # すべての見出しを文書順のフラットなリストとして保持
    headings: List[HeadingNode] = Field(default_factory=list)

    landmarks: List[Landmark] = Field(default_factory=list)
    semantic_elements: List[SemanticElementCount] = Field(default_factory=list)
    div_count: int = 0
    lists: List[ListInfo] = Field(default_factory=list)
    tables: List[TableInfo] = Field(default_factory=list)

    # 構造化データ
    json_ld: List[Dict[str, Any]] = Field(default_factory=list)
    microdata: List[MicrodataItem] = Field(default_factory=list)
    open_graph: Dict[str, str] = Field(default_factory=dict)
    meta_tags: Dict[str, str] = Field(default_factory=dict)

    links: List[LinkInfo] = Field(default_factory=list)

    # 本文テキストと、その統計値
    paragraphs: List[str] = Field(default_factory=list)
    sentences: List[str] = Field(default_factory=list)
    text_content: str = ""
    nav_text_length: int = 0
    main_text_length: int = 0
    total_text_length: int = 0

    def jsonld_nodes(self) -> Iterator[Dict[str, Any]]:
        """
        JSON-LD のトップレベルブロックと、その @graph 配下のノードを順に返す。
        （Yoast などは @graph にまとめて出力するため、両方を見る必要がある）
        """
        for block in self.json_ld:
            yield block
            graph = block.get("@graph")
            if isinstance(graph, list):
                for item in graph:
                    if isinstance(item, dict):
                        yield item

    def jsonld_has_any(self, *keys: str) -> bool:
        """いずれかの JSON-LD ノードが keys のどれかを truthy な値で持つか。"""
        return any(node.get(k) for node in self.jsonld_nodes() for k in keys)
