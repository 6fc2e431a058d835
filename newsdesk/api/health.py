"""Health check router -- configured providers, embedding backend, monitor state."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from newsdesk import __version__
from newsdesk.api.dependencies import AppSettings

router = APIRouter()


@router.get("/")
async def root():
    return {"service": "Newsdesk API", "version": __version__}


@router.get("/health")
async def health(request: Request, settings: AppSettings):
    monitor = getattr(request.app.state, "monitor", None)
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "sources": settings.configured_sources(),
        "embeddings": settings.get_embedding_config().get("provider"),
        "monitor": {
            "enabled": settings.monitor_enabled,
            "running": bool(monitor and monitor.running),
            "interval_seconds": settings.monitor_interval_seconds,
        },
        "config": {
            "semantic_dedup_enabled": settings.semantic_dedup_enabled,
            "semantic_dedup_threshold": settings.semantic_dedup_threshold,
            "trend_window_days": settings.trend_window_days,
            "source_timeout_seconds": settings.source_timeout_seconds,
        },
    }
