"""
Embedding oracle used by semantic dedup.

Supports (in priority order):
1. OpenAI embeddings API (text-embedding-3-small, 1536-dim)
2. Ollama nomic-embed-text (local, 768-dim)

The oracle is optional. With neither backend configured `available` is
False and semantic dedup is skipped. A failed request returns None for that
text only.

IMPORTANT: similarity is only meaningful between vectors from one model.
The first successful embedding locks the dimension; a later vector of a
different size (e.g. after a fallback to Ollama) is rejected.
"""

import logging
from typing import List, Optional, Sequence

import httpx
import numpy as np

from ..config import Settings, get_settings
from ..errors import ValidationError

logger = logging.getLogger(__name__)

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"


def article_text(title: str, description: Optional[str] = None) -> str:
    """Text embedded for an article: title, blank line, description (if any)."""
    if description:
        return f"{title}\n\n{description}"
    return title


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors, in [-1, 1].

    A zero-magnitude vector yields 0.0. Vectors of different lengths raise
    ValidationError.
    """
    if len(a) != len(b):
        raise ValidationError(f"Vectors must have the same length ({len(a)} != {len(b)})")
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    # Rounding can push identical vectors a hair past 1.0
    return max(-1.0, min(1.0, similarity))


class EmbeddingTool:
    """
    Async embedding client.

    Priority:
    1. OpenAI (if OPENAI_API_KEY set)
    2. Ollama (if USE_OLLAMA=true)

    Args:
        settings: Settings to read backends from (defaults to get_settings()).
        transport: Optional httpx transport for tests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._embedding_dim: Optional[int] = None
        self._active_provider: Optional[str] = None

    @property
    def available(self) -> bool:
        return bool(self.settings.openai_api_key) or self.settings.use_ollama

    @property
    def embedding_dim(self) -> Optional[int]:
        return self._embedding_dim

    @property
    def active_provider(self) -> Optional[str]:
        return self._active_provider

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.embedding_timeout_seconds,
            transport=self._transport,
        )

    async def embed(self, text: str) -> Optional[List[float]]:
        """Embed one text. Returns None on failure or when no backend works."""
        if not text or not text.strip():
            return None
        text = text[: self.settings.embedding_max_chars]

        if self.settings.openai_api_key:
            try:
                return self._accept(await self._embed_openai(text), "openai")
            except (httpx.HTTPError, ValueError, KeyError, TypeError, IndexError) as e:
                fallback = ", trying Ollama" if self.settings.use_ollama else ""
                logger.warning(f"OpenAI embedding failed: {type(e).__name__}: {e}{fallback}")

        if self.settings.use_ollama:
            try:
                return self._accept(await self._embed_ollama(text), "ollama")
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Ollama embedding failed: {type(e).__name__}: {e}")

        return None

    async def _embed_openai(self, text: str) -> List[float]:
        headers = {"Authorization": f"Bearer {self.settings.openai_api_key}"}
        payload = {"model": self.settings.openai_embedding_model, "input": text}
        async with self._client() as client:
            response = await client.post(OPENAI_EMBEDDINGS_URL, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()["data"][0]["embedding"]

    async def _embed_ollama(self, text: str) -> List[float]:
        url = f"{self.settings.ollama_base_url}/api/embeddings"
        payload = {"model": self.settings.ollama_embedding_model, "prompt": text}
        async with self._client() as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
            return response.json()["embedding"]

    def _accept(self, embedding: List[float], provider: str) -> Optional[List[float]]:
        """Apply the dimension lock. Returns None for an empty or mismatched vector."""
        if not embedding:
            raise ValueError(f"{provider} returned an empty embedding")
        if self._embedding_dim is None:
            self._embedding_dim = len(embedding)
            self._active_provider = provider
            logger.info(f"Embedding provider: {provider} (dim={self._embedding_dim})")
        elif len(embedding) != self._embedding_dim:
            logger.error(
                f"{provider} returned {len(embedding)}-dim, expected {self._embedding_dim}. "
                f"Rejecting to keep similarities comparable."
            )
            return None
        return [float(v) for v in embedding]
