# analyzers/structured_data.py

from __future__ import annotations

from typing import Any, Dict, List

from models.heuristics_models import ActionableItem, AnalyzerResult, HeuristicScore
from models.page_models import ParsedPage
from services.numeric import round_half_up, weighted_score

CATEGORY = "Structured Data"

WEIGHTS = {
    "json_ld": 0.30,
    "microdata": 0.15,
    "open_graph": 0.25,
    "breadcrumb": 0.15,
    "metadata": 0.15,
}

ESSENTIAL_OG = ["og:title", "og:description", "og:type", "og:url"]

JSON_LD_UNTYPED_SCORE = 70
# JSON-LD を推奨しているので microdata が無くても減点は軽め
NO_MICRODATA_SCORE = 40
PARTIAL_OG_MAX = 80
BREADCRUMB_NAV_ONLY_SCORE = 40


def _node_types(node: Dict[str, Any]) -> List[str]:
    t = node.get("@type")
    if isinstance(t, list):
        return [str(x) for x in t if x]
    return [str(t)] if t else []


def analyze_structured_data(page: ParsedPage) -> AnalyzerResult:
    """
    構造化データを採点する。

    - JSON-LD / Schema.org (30%)
    - Microdata (15%)
    - OpenGraph (25%)
    - パンくず (15%)
    - 著者 / description / 公開日 (15%)
    """
    details: List[str] = []
    issues: List[str] = []
    items: List[ActionableItem] = []

    # ---------- JSON-LD ----------
    json_ld_score = 0
    if page.json_ld:
        json_ld_score = JSON_LD_UNTYPED_SCORE
        details.append(f"{len(page.json_ld)} JSON-LD block(s) found")

        types = [t for node in page.jsonld_nodes() for t in _node_types(node)]
        if types:
            json_ld_score = 100
            details.append(f"Schema types: {', '.join(types)}")
    else:
        issues.append("No JSON-LD structured data found")
        items.append(ActionableItem(
            priority="high",
            category=CATEGORY,
            issue="No JSON-LD structured data on the page",
            recommendation="Add JSON-LD markup for the primary content type (Organization, WebPage, Article, etc.)",
            code_example=(
                '<script type="application/ld+json">\n{\n  "@context": "https://schema.org",\n'
                '  "@type": "WebPage",\n  "name": "Page Title",\n'
                '  "description": "Page description"\n}\n</script>'
            ),
        ))

    # ---------- Microdata ----------
    if page.microdata:
        microdata_score = 100
        details.append(f"{len(page.microdata)} microdata item(s) found")
    else:
        microdata_score = NO_MICRODATA_SCORE

    # ---------- OpenGraph ----------
    found_og = [k for k in ESSENTIAL_OG if k in page.open_graph]
    if len(found_og) == len(ESSENTIAL_OG):
        og_score = 100
        details.append("All essential OpenGraph tags present")
    elif found_og:
        og_score = round_half_up(len(found_og) / len(ESSENTIAL_OG) * PARTIAL_OG_MAX)
        missing = [k for k in ESSENTIAL_OG if k not in page.open_graph]
        issues.append(f"Missing OpenGraph tags: {', '.join(missing)}")
    else:
        og_score = 0
        issues.append("No OpenGraph tags found")
        items.append(ActionableItem(
            priority="medium",
            category=CATEGORY,
            issue="No OpenGraph meta tags found",
            recommendation="Add OpenGraph tags for better LLM and social media discovery",
            code_example=(
                '<meta property="og:title" content="Page Title">\n'
                '<meta property="og:description" content="Description">\n'
                '<meta property="og:type" content="website">\n'
                '<meta property="og:url" content="https://example.com/page">'
            ),
        ))

    if "og:image" in page.open_graph:
        details.append("og:image tag present")

    # ---------- パンくず ----------
    has_breadcrumb_schema = any("BreadcrumbList" in _node_types(node) for node in page.jsonld_nodes())
    has_breadcrumb_microdata = any("BreadcrumbList" in m.type for m in page.microdata)
    has_nav = any(lm.role == "navigation" or lm.tag == "nav" for lm in page.landmarks)

    if has_breadcrumb_schema or has_breadcrumb_microdata:
        breadcrumb_score = 100
        details.append("Breadcrumb structured data found")
    elif has_nav:
        breadcrumb_score = BREADCRUMB_NAV_ONLY_SCORE
        details.append("Navigation landmark found (but no breadcrumb schema)")
    else:
        breadcrumb_score = 0
        items.append(ActionableItem(
            priority="low",
            category=CATEGORY,
            issue="No breadcrumb markup found",
            recommendation="Add BreadcrumbList schema for site hierarchy",
        ))

    # ---------- 著者 / description / 公開日 ----------
    metadata_score = 0
    has_author = bool(page.meta_tags.get("author")) or page.jsonld_has_any("author", "creator")
    has_description = bool(page.meta_tags.get("description"))
    has_date = bool(
        page.meta_tags.get("article:published_time") or page.open_graph.get("article:published_time")
    )

    if has_author:
        metadata_score += 40
        details.append("Author attribution found")
    else:
        issues.append("No author metadata found")

    if has_description:
        metadata_score += 30
        details.append("Meta description present")
    else:
        issues.append("No meta description found")
        items.append(ActionableItem(
            priority="high",
            category=CATEGORY,
            issue="No meta description tag",
            recommendation="Add a concise meta description summarizing the page content",
            code_example='<meta name="description" content="A concise summary of the page content.">',
        ))

    if has_date:
        metadata_score += 30
        details.append("Article publication date found")
    metadata_score = min(100, metadata_score)

    parts = {
        "json_ld": json_ld_score,
        "microdata": microdata_score,
        "open_graph": og_score,
        "breadcrumb": breadcrumb_score,
        "metadata": metadata_score,
    }
    return AnalyzerResult(
        score=HeuristicScore(score=weighted_score(parts, WEIGHTS), details=details, issues=issues),
        actionable_items=items,
    )
