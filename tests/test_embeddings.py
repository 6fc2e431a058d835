"""Cosine similarity and the embedding oracle."""

import json

import httpx
import pytest

from newsdesk.errors import ValidationError
from newsdesk.tools.embeddings import EmbeddingTool, article_text, cosine_similarity


class TestCosineSimilarity:
    def test_symmetric(self):
        a, b = [0.3, -1.2, 4.0], [2.0, 0.5, -0.7]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_identical_vectors_are_one(self):
        v = [0.12, 0.5, -0.33, 7.0]
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_opposite_vectors_are_minus_one(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_range(self):
        pairs = [([1, 0], [0, 1]), ([3, 4], [4, 3]), ([1, 1, 1], [-2, 1, 0.5])]
        for a, b in pairs:
            assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_zero_vector_is_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_length_mismatch_raises(self):
        with pytest.raises(ValidationError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


def test_article_text():
    assert article_text("Title", "Body") == "Title\n\nBody"
    assert article_text("Title", None) == "Title"
    assert article_text("Title", "") == "Title"


def _openai_handler(vectors, seen):
    """Serve OpenAI embedding responses from a queue of vectors."""
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append((request, body))
        return httpx.Response(200, json={"data": [{"embedding": vectors.pop(0)}]})
    return handler


class TestEmbeddingTool:
    def test_unavailable_without_backend(self, settings):
        assert EmbeddingTool(settings).available is False

    @pytest.mark.asyncio
    async def test_openai_embedding(self, make_settings):
        seen = []
        transport = httpx.MockTransport(_openai_handler([[0.1, 0.2, 0.3]], seen))
        tool = EmbeddingTool(make_settings(OPENAI_API_KEY="sk-test"), transport=transport)

        assert tool.available
        assert await tool.embed("hello world") == [0.1, 0.2, 0.3]

        request, body = seen[0]
        assert request.url.path == "/v1/embeddings"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert body == {"model": "text-embedding-3-small", "input": "hello world"}
        assert tool.embedding_dim == 3
        assert tool.active_provider == "openai"

    @pytest.mark.asyncio
    async def test_text_truncated_before_request(self, make_settings):
        seen = []
        transport = httpx.MockTransport(_openai_handler([[1.0, 0.0]], seen))
        tool = EmbeddingTool(make_settings(OPENAI_API_KEY="sk-test", EMBEDDING_MAX_CHARS=100), transport=transport)

        await tool.embed("a" * 5000)

        assert len(seen[0][1]["input"]) == 100

    @pytest.mark.asyncio
    async def test_blank_text_returns_none(self, make_settings):
        tool = EmbeddingTool(make_settings(OPENAI_API_KEY="sk-test"))
        assert await tool.embed("   ") is None

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self, make_settings):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"}))
        tool = EmbeddingTool(make_settings(OPENAI_API_KEY="sk-test"), transport=transport)

        assert await tool.embed("hello") is None

    @pytest.mark.asyncio
    async def test_falls_back_to_ollama(self, make_settings):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "api.openai.com":
                return httpx.Response(429, json={"error": "rate limited"})
            assert request.url.path == "/api/embeddings"
            assert json.loads(request.content)["model"] == "nomic-embed-text"
            return httpx.Response(200, json={"embedding": [0.5, 0.5]})

        settings = make_settings(OPENAI_API_KEY="sk-test", USE_OLLAMA=True)
        tool = EmbeddingTool(settings, transport=httpx.MockTransport(handler))

        assert await tool.embed("hello") == [0.5, 0.5]
        assert tool.active_provider == "ollama"

    @pytest.mark.asyncio
    async def test_dimension_locked_after_first_embedding(self, make_settings):
        seen = []
        transport = httpx.MockTransport(_openai_handler([[1.0, 0.0, 0.0], [1.0, 0.0]], seen))
        tool = EmbeddingTool(make_settings(OPENAI_API_KEY="sk-test"), transport=transport)

        assert await tool.embed("first") == [1.0, 0.0, 0.0]
        assert await tool.embed("second") is None
        assert tool.embedding_dim == 3
