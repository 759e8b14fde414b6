# services/content_condenser.py

from __future__ import annotations

from typing import List

from models.page_models import ParsedPage

MAX_TOTAL_CHARS = 12_000
MAX_HEADINGS = 30
MIN_CONTENT_BUDGET = 2_000
# リンク・統計セクション用に確保しておく文字数
FOOTER_RESERVE = 500


def _identity_section(page: ParsedPage) -> str:
    meta = page.meta_tags
    description = meta.get("description") or meta.get("og:description") or "(none)"
    return (
        "=== PAGE IDENTITY ===\n"
        f"Title: {page.title or '(none)'}\n"
        f"Description: {description}\n"
        f"Author: {meta.get('author') or '(none)'}"
    )


def _structured_data_section(page: ParsedPage) -> str | None:
    parts: List[str] = []
    if page.json_ld:
        types = ", ".join(str(node["@type"]) for node in page.jsonld_nodes() if node.get("@type")) or "unknown"
        parts.append(f"JSON-LD types: {types}")
    if page.open_graph:
        og = "; ".join(f"{k}={v}" for k, v in list(page.open_graph.items())[:10])
        parts.append(f"OpenGraph: {og}")
    if page.microdata:
        parts.append(f"Microdata types: {', '.join(m.type for m in page.microdata)}")
    if not parts:
        return None
    return "=== STRUCTURED DATA ===\n" + "\n".join(parts)


def _semantic_section(page: ParsedPage) -> str:
    parts: List[str] = []
    if page.landmarks:
        parts.append(f"Landmarks: {', '.join(lm.role or lm.tag for lm in page.landmarks)}")
    semantic = ", ".join(f"{e.tag}({e.count})" for e in page.semantic_elements[:10])
    if semantic:
        parts.append(f"Semantic elements: {semantic}")
    parts.append(f"Divs: {page.div_count}")
    if page.lists:
        parts.append(f"Lists: {len(page.lists)} (items: {sum(lst.item_count for lst in page.lists)})")
    if page.tables:
        parts.append(f"Tables: {len(page.tables)}")
    return "=== SEMANTIC STRUCTURE ===\n" + "\n".join(parts)


def condense_page(page: ParsedPage) -> str:
    """
    ParsedPage を LLM に渡すための要約テキストに変換する。

    ページ全体を投げるとトークンが重くなるので、
    識別情報 → 見出しアウトライン → 構造化データ → 構造 → 本文抜粋 → リンク → 統計
    の順に並べ、全体で約 12,000 文字に収める。
    """
    sections: List[str] = [_identity_section(page)]

    if page.headings:
        lines = [f"{'  ' * (h.level - 1)}H{h.level}: {h.text}" for h in page.headings[:MAX_HEADINGS]]
        sections.append(f"=== HEADING OUTLINE ({len(page.headings)} total) ===\n" + "\n".join(lines))

    structured = _structured_data_section(page)
    if structured:
        sections.append(structured)

    sections.append(_semantic_section(page))

    # 本文抜粋: 残りの予算に収まるところまで段落を先頭から詰める
    used = len("\n\n".join(sections))
    budget = max(MIN_CONTENT_BUDGET, MAX_TOTAL_CHARS - used - FOOTER_RESERVE)
    excerpt = ""
    for para in page.paragraphs:
        trimmed = para.strip()
        if not trimmed:
            continue
        if len(excerpt) + len(trimmed) + 2 > budget:
            break
        excerpt += trimmed + "\n\n"
    if excerpt:
        sections.append("=== CONTENT EXCERPT ===\n" + excerpt.rstrip())

    internal = [link for link in page.links if not link.is_external]
    external = [link for link in page.links if link.is_external]
    sample = "; ".join(f"{link.text or '(no text)'} → {link.href}" for link in external[:5])
    sections.append(
        "=== LINKS ===\n"
        f"Internal: {len(internal)}, External: {len(external)}\n"
        + (f"Sample external: {sample}" if sample else "")
    )

    sections.append(
        "=== STATS ===\n"
        f"Total chars: {page.total_text_length}, "
        f"Sentences: {len(page.sentences)}, "
        f"Paragraphs: {len(page.paragraphs)}"
    )

    return "\n\n".join(sections)[:MAX_TOTAL_CHARS]
