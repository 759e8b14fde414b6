"""
Pytest Configuration and Shared Fixtures

Provides sample pages and fake network collaborators (LLM / embeddings / fetch).
"""

import json
import time
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

import pytest

from models.page_models import ParsedPage
from services.html_parser import parse_html


# ============================================================================
# Sample HTML
# ============================================================================

RICH_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<title>How Solar Panels Work</title>
<meta name="description" content="A plain guide to how solar panels turn light into power.">
<meta name="author" content="Jane Smith">
<meta name="article:published_time" content="2024-03-01">
<meta property="og:title" content="How Solar Panels Work">
<meta property="og:description" content="A plain guide.">
<meta property="og:type" content="article">
<meta property="og:url" content="https://example.com/solar">
<script type="application/ld+json">
{"@context": "https://schema.org", "@graph": [
  {"@type": "Article", "headline": "How Solar Panels Work",
   "author": {"@type": "Person", "name": "Jane Smith"}, "datePublished": "2024-03-01"},
  {"@type": "BreadcrumbList", "itemListElement": []}
]}
</script>
<script type="application/ld+json">{not valid json</script>
</head>
<body>
<header><a href="/">Home</a></header>
<nav><a href="/guides">Guides</a></nav>
<main>
<article>
<h1>How Solar Panels Work</h1>
<p>Solar panels turn sunlight into electricity. Each panel holds many small cells made of silicon. In 2023 the average home system produced 7,200 kWh per year [1].</p>
<h2>The photovoltaic effect</h2>
<p>Light hits the cell and frees electrons. The electrons flow as a current. An inverter changes this direct current into the alternating current your home uses.</p>
<h3>Cell types</h3>
<ul><li>Monocrystalline</li><li>Polycrystalline</li><li>Thin film</li></ul>
<h2>References</h2>
<p>See the <a href="https://www.energy.gov/solar">Department of Energy solar guide</a>, the <a href="https://www.nrel.gov/research">NREL research summary</a> and the <a href="https://iea.org/reports/solar">IEA solar report</a>.<sup>1</sup></p>
</article>
</main>
<footer><p>Copyright 2024 Example Co.</p></footer>
</body>
</html>"""


def make_content_html(title: str, h1: str, paragraphs: List[str]) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return (
        f"<html><head><title>{title}</title></head><body>"
        f"<nav>Menu Home About</nav><main><h1>{h1}</h1>{body}</main>"
        "<footer>Footer text</footer></body></html>"
    )


@pytest.fixture
def rich_html() -> str:
    return RICH_HTML


@pytest.fixture
def rich_page() -> ParsedPage:
    return parse_html(RICH_HTML, base_url="https://example.com/solar")


@pytest.fixture
def empty_page() -> ParsedPage:
    return ParsedPage()


# ============================================================================
# LLM judge fakes
# ============================================================================

def make_judgment(overall: int = 80, **overrides) -> Dict:
    """Valid judge payload; overrides replace top-level keys."""
    payload = {
        "extractability": {"score": 80, "notes": "clear sections"},
        "citation_worthiness": {"score": 70, "notes": "has dates"},
        "query_relevance": {"score": 75, "notes": "focused"},
        "structure_quality": {"score": 85, "notes": "good headings"},
        "authority_signals": {"score": 60, "notes": "named author"},
        "overall_score": overall,
        "improvements": ["Add a summary table"],
        "examples": ["In 2023 the average home system produced 7,200 kWh"],
    }
    payload.update(overrides)
    return payload


def _chat_response(content: Optional[str]) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeJudgeClient:
    """
    Mimics `client.chat.completions.create(...)`.
    `behaviours` maps model id -> response text, or an exception instance to raise.
    `delays` maps model id -> seconds to sleep before answering.
    """

    def __init__(self, behaviours: Dict[str, object], delays: Optional[Dict[str, float]] = None):
        self.behaviours = behaviours
        self.delays = delays or {}
        self.calls: List[Dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        delay = self.delays.get(kwargs["model"])
        if delay:
            time.sleep(delay)
        behaviour = self.behaviours.get(kwargs["model"])
        if isinstance(behaviour, Exception):
            raise behaviour
        return _chat_response(behaviour)


@pytest.fixture
def judge_models() -> Dict[str, str]:
    return {"claude": "test/claude", "gpt": "test/gpt", "gemini": "test/gemini"}


@pytest.fixture
def valid_judgment_json() -> Callable[..., str]:
    def _make(overall: int = 80, **overrides) -> str:
        return json.dumps(make_judgment(overall, **overrides))
    return _make


# ============================================================================
# Embedding / fetch fakes
# ============================================================================

class FakeEmbedder:
    """Returns a fixed vector for any non-blank text (or a per-text override)."""

    def __init__(self, vector: Optional[List[float]] = None, overrides: Optional[Dict[str, List[float]]] = None):
        self.vector = vector or [1.0, 0.0, 0.5]
        self.overrides = overrides or {}
        self.inputs: List[str] = []

    def get_embedding(self, text: str) -> List[float]:
        self.inputs.append(text)
        if not text or not text.strip():
            return []
        return self.overrides.get(text, self.vector)


class FakeFetcher:
    """Serves HTML from a dict; unknown URLs raise like a failed request."""

    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.requested: List[str] = []

    def __call__(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise ConnectionError(f"could not reach {url}")
        return self.pages[url]


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()
