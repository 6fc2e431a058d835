"""
Two-phase article deduplication for a single search batch.

DEDUP PIPELINE:
  1. LEXICAL:   Normalized-title bucket key. O(n), no external calls.
                Catches syndicated copies and punctuation/case variants
                ("Apple event" vs "apple event!!").
  2. SEMANTIC:  Embedding cosine similarity >= 0.85 between phase-1
                survivors. Catches the same event told with different
                wording by different outlets.

In both phases the more recent article of a duplicate pair survives; ties
keep whichever arrived first. Phase 2 is strictly additive: it only ever
removes articles that have positive evidence of similarity, and it is
skipped entirely when no embedding oracle is usable. URL identity is not
handled here; the store merges same-URL articles on insert.

Determinism: input order is adapter-registration order, so given identical
upstream data (and a deterministic oracle) the result is reproducible.
"""

import asyncio
import logging
import re
from typing import Dict, List, Optional, Protocol, Sequence

from ..config import Settings, get_settings
from ..errors import ValidationError
from ..schemas import CanonicalArticle
from ..tools.embeddings import article_text, cosine_similarity

logger = logging.getLogger(__name__)

# \w is Unicode-aware, so Hangul, CJK, Cyrillic etc. letters survive along
# with ASCII word characters; everything else (punctuation, emoji) goes.
_NON_WORD_RE = re.compile(r"[^\w\s]")


class EmbeddingOracle(Protocol):
    async def embed(self, text: str) -> Optional[List[float]]: ...


def title_key(title: str, prefix: int = 50) -> str:
    """Lexical bucket key: lowercase, punctuation removed, trimmed, truncated."""
    normalized = _NON_WORD_RE.sub("", title.lower()).strip()
    return normalized[:prefix]


class ArticleDeduplicator:
    """
    Lexical + semantic dedup engine.

    Args:
        oracle: Embedding source for phase 2. None disables semantic dedup.
        settings: Threshold, title prefix and concurrency cap (defaults to get_settings()).
    """

    def __init__(
        self,
        oracle: Optional[EmbeddingOracle] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.oracle = oracle
        self.threshold = self.settings.semantic_dedup_threshold
        self.title_prefix = self.settings.dedup_title_prefix
        self.max_concurrency = self.settings.embedding_max_concurrency

    @property
    def semantic_enabled(self) -> bool:
        if self.oracle is None or not self.settings.semantic_dedup_enabled:
            return False
        return bool(getattr(self.oracle, "available", True))

    async def deduplicate(self, articles: Sequence[CanonicalArticle]) -> List[CanonicalArticle]:
        """Run both phases and return the survivors in first-seen order."""
        if not articles:
            return []

        initial_count = len(articles)
        survivors = self.lexical_dedup(articles)
        lexical_count = len(survivors)

        if lexical_count > 1 and self.semantic_enabled:
            survivors = await self._semantic_dedup(survivors)

        removed = initial_count - len(survivors)
        if removed > 0:
            logger.info(
                f"[Dedup] {initial_count} → {len(survivors)} "
                f"(lexical -{initial_count - lexical_count}, semantic -{lexical_count - len(survivors)})"
            )
        return survivors

    # ── Phase 1 ─────────────────────────────────────────────────────────

    def lexical_dedup(self, articles: Sequence[CanonicalArticle]) -> List[CanonicalArticle]:
        """Keep one article per normalized-title bucket (the most recent).

        A replacement takes the replaced article's position, so output order
        is the order in which buckets were first seen.
        """
        buckets: Dict[str, int] = {}
        kept: List[CanonicalArticle] = []

        for article in articles:
            key = title_key(article.title, self.title_prefix)
            if not key:
                # Title was nothing but punctuation: no lexical evidence, key by URL
                key = f"url:{article.url}"
            index = buckets.get(key)
            if index is None:
                buckets[key] = len(kept)
                kept.append(article)
            elif article.published_at > kept[index].published_at:
                kept[index] = article

        if len(kept) < len(articles):
            logger.debug(f"[Dedup] Title dedup: {len(articles)} → {len(kept)}")
        return kept

    # ── Phase 2 ─────────────────────────────────────────────────────────

    async def _embed_all(self, articles: Sequence[CanonicalArticle]) -> List[Optional[List[float]]]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _embed_one(article: CanonicalArticle) -> Optional[List[float]]:
            async with semaphore:
                try:
                    return await self.oracle.embed(article_text(article.title, article.description))
                except Exception as e:
                    # Oracle contract is None-on-failure; a misbehaving one
                    # still only costs this article its embedding
                    logger.warning(f"[Dedup] Embedding failed for {article.url}: {type(e).__name__}: {e}")
                    return None

        return list(await asyncio.gather(*[_embed_one(a) for a in articles]))

    def _similarity(self, a: List[float], b: List[float]) -> float:
        try:
            return cosine_similarity(a, b)
        except ValidationError as e:
            logger.warning(f"[Dedup] {e}; treating pair as distinct")
            return 0.0

    async def _semantic_dedup(self, articles: List[CanonicalArticle]) -> List[CanonicalArticle]:
        """Incremental merge: compare each article against every kept one."""
        embeddings = await self._embed_all(articles)
        embedded_count = sum(1 for e in embeddings if e is not None)
        if embedded_count == 0:
            logger.warning("[Dedup] No embeddings returned, skipping semantic dedup")
            return articles

        kept: List[CanonicalArticle] = []
        for article, embedding in zip(articles, embeddings):
            if embedding is None:
                # Never compared, never dropped
                kept.append(article)
                continue
            candidate = article.model_copy(update={"embedding": embedding})

            best_index, best_score = None, 0.0
            for index, existing in enumerate(kept):
                if existing.embedding is None:
                    continue
                score = self._similarity(embedding, existing.embedding)
                if score >= self.threshold and (best_index is None or score > best_score):
                    best_index, best_score = index, score

            if best_index is None:
                kept.append(candidate)
            elif candidate.published_at > kept[best_index].published_at:
                logger.debug(
                    f"[Dedup] {candidate.url} replaces {kept[best_index].url} (sim={best_score:.3f})"
                )
                kept[best_index] = candidate
            else:
                logger.debug(
                    f"[Dedup] {candidate.url} duplicates {kept[best_index].url} (sim={best_score:.3f})"
                )

        if embedded_count < len(articles):
            logger.info(f"[Dedup] Semantic pass ran with {embedded_count}/{len(articles)} embeddings")
        return [a.model_copy(update={"embedding": None}) if a.embedding is not None else a for a in kept]
