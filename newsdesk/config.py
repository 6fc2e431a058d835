"""
Configuration management for the Newsdesk aggregation service.
Provider credentials, dedup thresholds, trend windows, and monitor cadence
are all loaded from environment variables (or a local .env file).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── News providers ──
    # Every provider is optional: a missing credential means the provider
    # contributes nothing, it is never an error.
    newsapi_key: str = Field(default="", alias="NEWSAPI_KEY")
    newsapi_language: str = Field(default="en", alias="NEWSAPI_LANGUAGE")

    naver_client_id: str = Field(default="", alias="NAVER_CLIENT_ID")
    naver_client_secret: str = Field(default="", alias="NAVER_CLIENT_SECRET")

    bing_api_key: str = Field(default="", alias="BING_API_KEY")
    bing_market: str = Field(default="en-US", alias="BING_MARKET")

    # Google News RSS search needs no key
    google_news_enabled: bool = Field(default=True, alias="GOOGLE_NEWS_ENABLED")
    google_news_locale: str = Field(default="hl=en-US&gl=US&ceid=US:en", alias="GOOGLE_NEWS_LOCALE")

    # Hard per-request timeout so one slow provider cannot stall a search
    source_timeout_seconds: float = Field(default=10.0, alias="SOURCE_TIMEOUT_SECONDS")
    source_max_results: int = Field(default=10, alias="SOURCE_MAX_RESULTS")

    # ── Embeddings (semantic dedup) ──
    # Provider priority: OpenAI → Ollama. Neither configured = semantic dedup off.
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_embedding_model: str = Field(default="text-embedding-3-small", alias="OPENAI_EMBEDDING_MODEL")
    use_ollama: bool = Field(default=False, alias="USE_OLLAMA")
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")
    ollama_embedding_model: str = Field(default="nomic-embed-text", alias="OLLAMA_EMBEDDING_MODEL")
    # text-embedding-3-small accepts 8191 tokens; raw text is capped before the call
    embedding_max_chars: int = Field(default=8000, alias="EMBEDDING_MAX_CHARS")
    embedding_timeout_seconds: float = Field(default=30.0, alias="EMBEDDING_TIMEOUT_SECONDS")

    # ── Deduplication ──
    # Normalized-title prefix length used as the lexical bucket key
    dedup_title_prefix: int = Field(default=50, alias="DEDUP_TITLE_PREFIX")
    semantic_dedup_enabled: bool = Field(default=True, alias="SEMANTIC_DEDUP_ENABLED")
    # 0.85 = same event told by different outlets; lower values start merging
    # related-but-distinct stories
    semantic_dedup_threshold: float = Field(default=0.85, alias="SEMANTIC_DEDUP_THRESHOLD")
    # Upstream embedding APIs rate-limit per key, independent of batch size
    embedding_max_concurrency: int = Field(default=10, alias="EMBEDDING_MAX_CONCURRENCY")

    # ── Trends ──
    trend_window_days: int = Field(default=7, alias="TREND_WINDOW_DAYS")
    trend_top_n: int = Field(default=5, alias="TREND_TOP_N")
    trend_change_threshold: float = Field(default=2.0, alias="TREND_CHANGE_THRESHOLD")

    # ── Breaking news monitor ──
    monitor_enabled: bool = Field(default=True, alias="MONITOR_ENABLED")
    monitor_interval_seconds: float = Field(default=120.0, alias="MONITOR_INTERVAL_SECONDS")
    monitor_initial_delay_seconds: float = Field(default=30.0, alias="MONITOR_INITIAL_DELAY_SECONDS")
    monitor_lookback_minutes: int = Field(default=5, alias="MONITOR_LOOKBACK_MINUTES")
    monitor_max_concurrent: int = Field(default=4, alias="MONITOR_MAX_CONCURRENT")
    monitor_preview_size: int = Field(default=3, alias="MONITOR_PREVIEW_SIZE")

    # ── Database ──
    database_url: str = Field(
        default="sqlite+aiosqlite:///./newsdesk.db",
        alias="DATABASE_URL"
    )
    query_result_limit: int = Field(default=100, alias="QUERY_RESULT_LIMIT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def configured_sources(self) -> dict:
        """Which providers have what they need to run (for /health)."""
        return {
            "newsapi": bool(self.newsapi_key),
            "naver": bool(self.naver_client_id and self.naver_client_secret),
            "bing": bool(self.bing_api_key),
            "google_news": self.google_news_enabled,
        }

    def get_embedding_config(self) -> dict:
        """Get embedding backend configuration.

        Priority: OpenAI → Ollama
        """
        if self.openai_api_key:
            return {
                "provider": "openai",
                "api_key": self.openai_api_key,
                "model": self.openai_embedding_model,
            }
        elif self.use_ollama:
            return {
                "provider": "ollama",
                "model": self.ollama_embedding_model,
                "base_url": self.ollama_base_url,
            }
        return {"provider": None}


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Provider registry. Keys are NewsProvider values; order of
# DEFAULT_ACTIVE_SOURCES is the fixed registration order results are
# concatenated in before dedup.
NEWS_SOURCES = {
    # ── NewsAPI.org ────────────────────────────────────────────────────
    # 80,000+ international sources. Free developer tier: 100 calls/day.
    "newsapi": {
        "id": "newsapi",
        "name": "NewsAPI",
        "api_endpoint": "https://newsapi.org/v2/everything",
        "credential_env": ["NEWSAPI_KEY"],
        "default_category": "general",
        "default_image_url": "https://placehold.co/600x400/1e40af/white?text=NewsAPI",
    },
    # ── Naver Search API (Korean news) ─────────────────────────────────
    # 25,000 calls/day. No images or categories in the search endpoint.
    "naver": {
        "id": "naver",
        "name": "Naver News",
        "api_endpoint": "https://openapi.naver.com/v1/search/news.json",
        "credential_env": ["NAVER_CLIENT_ID", "NAVER_CLIENT_SECRET"],
        "default_category": "general",
        "default_image_url": None,
    },
    # ── Bing News Search v7 ────────────────────────────────────────────
    "bing": {
        "id": "bing",
        "name": "Bing News",
        "api_endpoint": "https://api.bing.microsoft.com/v7.0/news/search",
        "credential_env": ["BING_API_KEY"],
        "default_category": "general",
        "default_image_url": None,
    },
    # ── Google News RSS search (unofficial, keyless) ───────────────────
    "google_news": {
        "id": "google_news",
        "name": "Google News",
        "api_endpoint": "https://news.google.com/rss/search",
        "credential_env": [],
        "default_category": "general",
        "default_image_url": None,
    },
}

DEFAULT_ACTIVE_SOURCES = ["newsapi", "naver", "bing", "google_news"]

# Returned by TrendAggregator when the store has nothing in the window, so an
# empty system still renders a dashboard.
FALLBACK_TRENDS = [
    {"category": "technology", "direction": "up", "article_count": 124, "change_percent": 15.2},
    {"category": "business", "direction": "up", "article_count": 98, "change_percent": 8.5},
    {"category": "general", "direction": "stable", "article_count": 65, "change_percent": 0.5},
]
