# analyzers/citation_markers.py

from __future__ import annotations

import re
from typing import List

from models.heuristics_models import ActionableItem, AnalyzerResult, HeuristicScore
from models.page_models import ParsedPage
from services.numeric import weighted_score

CATEGORY = "Citation Markers"

WEIGHTS = {
    "dates": 0.25,
    "author": 0.20,
    "external_links": 0.20,
    "source_refs": 0.20,
    "footnotes": 0.15,
}

DATE_META_KEYS = [
    "article:published_time",
    "date",
    "dcterms.date",
    "dcterms.modified",
    "dcterms.created",
]
DATE_OG_KEYS = ["article:published_time", "article:modified_time"]

# 本文中に見える日付（例: "Published: 12 Jan 2024"）
VISIBLE_DATE_RE = re.compile(
    r"(?:published|updated|modified|date)[:\s]*\d{1,2}[\s,/-]+"
    r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec|\d{1,2})[\s,/-]+\d{2,4}",
    re.IGNORECASE,
)
BYLINE_RE = re.compile(r"\b(?:by|author|written by)[:\s]+[A-Z][a-z]+", re.IGNORECASE)

POOR_ANCHOR_RE = re.compile(r"^(click here|here|link|read more)$", re.IGNORECASE)
MIN_EXTERNAL_LINKS = 3
DESCRIPTIVE_LINK_SHARE = 0.6

REFERENCE_HEADING_RES = [
    re.compile(p, re.IGNORECASE)
    for p in (r"references", r"bibliography", r"sources", r"further reading", r"see also")
]
# [1] や (Smith, 2023) のようなインライン引用
INLINE_CITATION_RE = re.compile(r"\[\d+\]|\([A-Z][a-z]+,?\s*\d{4}\)")
FOOTNOTE_MARKUP_RE = re.compile(r'\[\d+\]|<sup>.*?</sup>|class="footnote"', re.IGNORECASE)


def _is_descriptive(text: str) -> bool:
    return len(text) > 5 and not POOR_ANCHOR_RE.match(text)


def analyze_citation_markers(page: ParsedPage) -> AnalyzerResult:
    """
    引用されやすさのシグナルを採点する。

    - 日付メタデータ (25%)
    - 著者情報 (20%)
    - 外部リンクの質 (20%)
    - 参考文献セクション (20%)
    - 脚注マークアップ (15%)
    """
    details: List[str] = []
    issues: List[str] = []
    items: List[ActionableItem] = []

    # ---------- 日付 ----------
    date_indicators = [page.meta_tags.get(k) for k in DATE_META_KEYS]
    date_indicators += [page.open_graph.get(k) for k in DATE_OG_KEYS]
    date_indicators = [d for d in date_indicators if d]
    has_jsonld_date = page.jsonld_has_any("datePublished", "dateModified")

    if date_indicators or has_jsonld_date:
        date_score = 100
        details.append("Publication/modification date metadata found")
        if len(date_indicators) > 1 or has_jsonld_date:
            details.append("Multiple date signals present")
    elif VISIBLE_DATE_RE.search(page.text_content):
        date_score = 50
        details.append("Date found in visible text but not in metadata")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue="Date is only in visible text, not in structured metadata",
            recommendation="Add date metadata using <meta> tags or JSON-LD datePublished/dateModified",
            code_example='<meta name="dcterms.date" content="2024-01-15">',
        ))
    else:
        date_score = 0
        issues.append("No date metadata or visible dates found")
        items.append(ActionableItem(
            priority="high",
            category=CATEGORY,
            issue="No publication or modification date found",
            recommendation="Add date metadata so LLMs can assess content freshness",
            code_example=(
                '<script type="application/ld+json">\n'
                '{"@type": "WebPage", "datePublished": "2024-01-15", "dateModified": "2024-06-01"}\n'
                "</script>"
            ),
        ))

    # ---------- 著者 ----------
    has_author_meta = bool(page.meta_tags.get("author"))
    has_author_schema = page.jsonld_has_any("author")

    if has_author_meta and has_author_schema:
        author_score = 100
        details.append("Author found in both meta tags and structured data")
    elif has_author_meta or has_author_schema:
        author_score = 70
        details.append("Author attribution found")
    elif BYLINE_RE.search(page.text_content):
        author_score = 30
        details.append("Author byline found in visible text only")
    else:
        author_score = 0
        issues.append("No author attribution found")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue="No author attribution on the page",
            recommendation="Add author metadata for credibility and citation",
            code_example='<meta name="author" content="Author Name">',
        ))

    # ---------- 外部リンク ----------
    external_links = [link for link in page.links if link.is_external]
    if len(external_links) >= MIN_EXTERNAL_LINKS:
        descriptive = [link for link in external_links if _is_descriptive(link.text)]
        if len(descriptive) >= len(external_links) * DESCRIPTIVE_LINK_SHARE:
            external_score = 100
            details.append(f"{len(external_links)} external links with descriptive text")
        else:
            external_score = 80
            details.append(f"{len(external_links)} external links, some with poor anchor text")
            items.append(ActionableItem(
                priority="low",
                category=CATEGORY,
                issue="Some external links use non-descriptive anchor text",
                recommendation="Use descriptive link text that indicates the destination content",
            ))
    elif external_links:
        external_score = 40
        details.append(f"Only {len(external_links)} external link(s)")
    else:
        external_score = 0
        issues.append("No external links found")

    # ---------- 参考文献 ----------
    has_ref_section = any(
        pattern.search(h.text) for h in page.headings for pattern in REFERENCE_HEADING_RES
    )
    has_inline_citations = bool(INLINE_CITATION_RE.search(page.text_content))

    if has_ref_section:
        source_score = 100
        details.append("Reference/source section found")
    elif has_inline_citations:
        source_score = 60
        details.append("Inline citations detected")
    else:
        # 参考文献が不要なページもあるので軽めの減点
        source_score = 20

    # ---------- 脚注 ----------
    has_footnote_markup = bool(FOOTNOTE_MARKUP_RE.search(page.html))
    if has_inline_citations and has_footnote_markup:
        footnote_score = 100
        details.append("Footnote markup detected")
    elif has_inline_citations:
        footnote_score = 60
    else:
        footnote_score = 20

    parts = {
        "dates": date_score,
        "author": author_score,
        "external_links": external_score,
        "source_refs": source_score,
        "footnotes": footnote_score,
    }
    return AnalyzerResult(
        score=HeuristicScore(score=weighted_score(parts, WEIGHTS), details=details, issues=issues),
        actionable_items=items,
    )
