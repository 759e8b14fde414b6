"""
Tests for embeddings, the similarity matrix, relationship classification and clustering.
"""

from types import SimpleNamespace

import logging

import pytest

from agents.similarity_agent import (
    RECOMMENDED_ACTIONS,
    THRESHOLDS,
    calculate_similarity_matrix,
    classify_relationship,
    classify_relationships,
    generate_embeddings,
    identify_intent_clusters,
)
from conftest import FakeEmbedder
from models.similarity_models import ContentPage, PageEmbeddings, SimilarityScore
from services.embedding_client import EmbeddingClient, cosine_similarity


def _score(title=0.0, intro=0.0, body=0.0, full=0.0, a="https://a.test", b="https://b.test"):
    return SimilarityScore(
        url_a=a,
        url_b=b,
        title_similarity=title,
        intro_similarity=intro,
        body_similarity=body,
        full_similarity=full,
    )


def _collision(a: str, b: str):
    return classify_relationship(_score(title=0.9, body=0.2, a=a, b=b))


class TestCosineSimilarity:
    def test_identical(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_symmetric(self):
        a, b = [0.3, 0.1, 0.9], [0.5, 0.7, 0.2]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    @pytest.mark.parametrize("a,b", [
        ([], [1.0]),
        ([1.0], []),
        ([1.0, 2.0], [1.0]),
        ([0.0, 0.0], [1.0, 1.0]),
    ])
    def test_degenerate_inputs_are_zero(self, a, b):
        assert cosine_similarity(a, b) == 0.0


class _EmbeddingsAPI:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.inputs = []

    def create(self, model, input):
        self.inputs.append(input)
        if self.fail:
            raise RuntimeError("rate limited")
        return SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2])])


class TestEmbeddingClient:
    def test_blank_text_skips_provider(self):
        api = _EmbeddingsAPI()
        client = EmbeddingClient(SimpleNamespace(embeddings=api))
        assert client.get_embedding("   ") == []
        assert api.inputs == []

    def test_truncates_input(self):
        api = _EmbeddingsAPI()
        client = EmbeddingClient(SimpleNamespace(embeddings=api))
        assert client.get_embedding("x" * 9000) == [0.1, 0.2]
        assert len(api.inputs[0]) == 8000

    def test_provider_failure_is_empty(self):
        client = EmbeddingClient(SimpleNamespace(embeddings=_EmbeddingsAPI(fail=True)))
        assert client.get_embedding("hello") == []

    def test_provider_failure_logs_warning(self, caplog):
        client = EmbeddingClient(SimpleNamespace(embeddings=_EmbeddingsAPI(fail=True)))
        with caplog.at_level(logging.WARNING, logger="services.embedding_client"):
            client.get_embedding("hello")
        assert any(r.levelno == logging.WARNING and "rate limited" in r.getMessage() for r in caplog.records)

    def test_missing_client_is_empty(self):
        assert EmbeddingClient(None).get_embedding("hello") == []


class TestGenerateEmbeddings:
    def test_failed_pages_pass_through(self):
        embedder = FakeEmbedder()
        pages = [
            ContentPage(url="https://ok.test", title="T", h1="H", intro_text="I", body_text="B"),
            ContentPage(url="https://bad.test", fetch_error="timeout"),
        ]
        out = generate_embeddings(pages, embedder)

        assert out[0].embeddings is not None
        assert out[0].embeddings.title == embedder.vector
        assert out[1].embeddings is None
        assert out[1].fetch_error == "timeout"

    def test_facet_texts(self):
        embedder = FakeEmbedder()
        page = ContentPage(url="u", title="T", h1="H", intro_text="I", body_text="B" * 9000)
        generate_embeddings([page], embedder)

        assert len(embedder.inputs) == 4
        assert "B" * 8000 in embedder.inputs
        full = [t for t in embedder.inputs if t.startswith("T H I ")]
        assert len(full) == 1 and len(full[0]) == 8000


class TestSimilarityMatrix:
    def _page(self, url, vec, error=None):
        emb = None if error else PageEmbeddings(title=vec, intro=vec, body=vec, full=vec)
        return ContentPage(url=url, embeddings=emb, fetch_error=error)

    def test_pairs_only_once(self):
        pages = [self._page(f"https://{c}.test", [1.0, 0.0]) for c in "abcd"]
        scores = calculate_similarity_matrix(pages)
        assert len(scores) == 6
        assert (scores[0].url_a, scores[0].url_b) == ("https://a.test", "https://b.test")
        assert all(s.url_a != s.url_b for s in scores)

    def test_failed_pages_excluded(self):
        pages = [
            self._page("https://a.test", [1.0, 0.0]),
            self._page("https://b.test", [1.0, 0.0], error="404"),
            self._page("https://c.test", [0.0, 1.0]),
        ]
        scores = calculate_similarity_matrix(pages)
        assert len(scores) == 1
        assert scores[0].url_b == "https://c.test"
        assert scores[0].title_similarity == pytest.approx(0.0)


class TestClassifier:
    """Rules are evaluated in order; the first match wins."""

    def test_definite_duplicate_boundary(self):
        rel = classify_relationship(_score(title=0.75, body=0.78))
        assert rel.classification == "Definite Duplicate"

    def test_just_below_duplicate_boundary(self):
        rel = classify_relationship(_score(title=0.9, body=0.7799, intro=0.5, full=0.5))
        assert rel.classification == "Unique"
        assert rel.confidence == 50

    def test_duplicate_wins_over_near_duplicate(self):
        rel = classify_relationship(_score(title=0.8, intro=0.9, body=0.9))
        assert rel.classification == "Definite Duplicate"
        assert rel.confidence == 85

    def test_near_duplicate(self):
        rel = classify_relationship(_score(title=0.2, intro=0.66, body=0.72))
        assert rel.classification == "Near Duplicate"
        assert rel.confidence == 69

    def test_intent_collision(self):
        rel = classify_relationship(_score(title=0.72, body=0.3))
        assert rel.classification == "Intent Collision"
        assert rel.confidence == 72
        assert "72.0%" in rel.reasoning and "30.0%" in rel.reasoning

    def test_body_at_060_is_cannibalization_not_collision(self):
        rel = classify_relationship(_score(title=0.75, body=0.60))
        assert rel.classification == "Potential Cannibalization"

    def test_potential_cannibalization(self):
        rel = classify_relationship(_score(title=0.65, body=0.5, intro=0.1))
        assert rel.classification == "Potential Cannibalization"

    def test_template_overlap(self):
        rel = classify_relationship(_score(title=0.2, body=0.5, full=0.8))
        assert rel.classification == "Template Overlap"
        assert rel.confidence == 80

    def test_unique(self):
        rel = classify_relationship(_score(title=0.1, intro=0.1, body=0.1, full=0.3))
        assert rel.classification == "Unique"
        assert rel.confidence == 70
        assert rel.reasoning == "Content is sufficiently different."

    def test_classification_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="agents.similarity_agent"):
            classify_relationship(_score(title=0.72, body=0.3))
        messages = [r.getMessage() for r in caplog.records]
        assert "[similarity] classified https://a.test vs https://b.test as Intent Collision (confidence=72)" in messages

    def test_summary_is_rounded(self):
        rel = classify_relationship(_score(title=0.12345, intro=0.5, body=0.456, full=0.999))
        assert rel.similarity_summary.title == 0.12
        assert rel.similarity_summary.body == 0.46
        assert rel.similarity_summary.full == 1.0

    def test_actions_are_fixed(self):
        assert len(RECOMMENDED_ACTIONS) == 6
        rel = classify_relationship(_score(title=0.72, body=0.3))
        assert rel.recommended_action == "Clarify intent and differentiate focus"

    def test_one_relationship_per_pair(self):
        scores = [_score(a="a", b="b"), _score(a="a", b="c"), _score(a="b", b="c")]
        assert len(classify_relationships(scores)) == 3

    def test_thresholds_table(self):
        assert THRESHOLDS["definite_duplicate"] == {"body": 0.78, "title": 0.75}


class TestIntentClusters:
    def test_connected_component(self):
        rels = [
            _collision("A", "B"),
            _collision("B", "C"),
            classify_relationship(_score(title=0.1, body=0.1, full=0.1, a="D", b="E")),
        ]
        clusters = identify_intent_clusters(rels)

        assert len(clusters) == 1
        assert clusters[0].primary_url == "A"
        assert clusters[0].cluster_urls == ["B", "C"]
        assert clusters[0].reasoning.startswith("3 URLs are competing for similar search intent.")

    def test_separate_components(self):
        clusters = identify_intent_clusters([_collision("A", "B"), _collision("C", "D")])
        assert [(c.primary_url, c.cluster_urls) for c in clusters] == [("A", ["B"]), ("C", ["D"])]

    def test_bfs_order(self):
        rels = [_collision("A", "B"), _collision("A", "C"), _collision("B", "D")]
        clusters = identify_intent_clusters(rels)
        assert clusters[0].cluster_urls == ["B", "C", "D"]

    def test_no_collisions(self):
        rel = classify_relationship(_score(title=0.1, body=0.1, full=0.1))
        assert identify_intent_clusters([rel]) == []
