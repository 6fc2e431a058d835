"""
Newsdesk - Main Entry Point.
FastAPI server and CLI interface.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .alerts.monitor import BreakingNewsMonitor
from .api import health, news, notifications, trends
from .config import Settings, get_settings
from .database import Database
from .errors import StoreUnavailableError, ValidationError
from .news.aggregator import NewsAggregator
from .news.dedup import ArticleDeduplicator
from .tools import ConnectionNotifier, EmbeddingTool, build_source_tools
from .trends.aggregator import TrendAggregator

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

# Suppress noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


class Components:
    """The wired-up core, shared by the API lifespan and the CLI."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.db = Database(settings.database_url, settings.query_result_limit)
        self.sources = build_source_tools(settings, transport=transport)
        self.oracle = EmbeddingTool(settings, transport=transport)
        self.deduplicator = ArticleDeduplicator(self.oracle, settings)
        self.aggregator = NewsAggregator(self.sources, self.deduplicator, self.db)
        self.trend_aggregator = TrendAggregator(self.db, settings)
        self.notifier = ConnectionNotifier()
        self.monitor = BreakingNewsMonitor(self.aggregator, self.db, self.notifier, settings)

    async def open(self) -> None:
        await self.db.create_tables()
        configured = [name for name, ok in self.settings.configured_sources().items() if ok]
        logger.info(f"Sources configured: {', '.join(configured) or 'none'}")
        if self.oracle.available:
            logger.info(f"Semantic dedup via {self.settings.get_embedding_config()['provider']}")
        else:
            logger.warning("No embedding backend configured, semantic dedup disabled")

    async def close(self) -> None:
        await self.monitor.stop()
        await self.db.dispose()


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the API app. `transport` replaces real provider HTTP (tests)."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        components = Components(settings, transport=transport)
        await components.open()
        app.state.settings = settings
        app.state.db = components.db
        app.state.aggregator = components.aggregator
        app.state.trend_aggregator = components.trend_aggregator
        app.state.notifier = components.notifier
        app.state.monitor = components.monitor
        if settings.monitor_enabled:
            components.monitor.start()
        logger.info("Newsdesk API started")
        try:
            yield
        finally:
            await components.close()
            logger.info("Newsdesk API stopped")

    app = FastAPI(
        title="Newsdesk",
        description="Multi-provider news search, trends, and breaking-news alerts",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Article store unavailable"})

    app.include_router(health.router)
    app.include_router(news.router, prefix="/api/news", tags=["news"])
    app.include_router(trends.router, prefix="/api/trends", tags=["trends"])
    app.include_router(notifications.router)
    return app


app = create_app()


# CLI Runner
async def cli_main():
    """Command-line interface: one-off search or trend report."""
    import argparse

    parser = argparse.ArgumentParser(description="Newsdesk news aggregation")
    parser.add_argument("--server", action="store_true", help="Start the FastAPI server")
    parser.add_argument("--port", type=int, default=8000, help="Server port (default: 8000)")
    parser.add_argument("--search", metavar="KEYWORD", help="Search all providers for KEYWORD")
    parser.add_argument("--source", default="all", help="Provider id or 'all' (with --search)")
    parser.add_argument("--trends", action="store_true", help="Print category trends")

    args = parser.parse_args()

    if args.server:
        import uvicorn
        logger.info(f"Starting server on port {args.port}...")
        config = uvicorn.Config(app, host="0.0.0.0", port=args.port)
        await uvicorn.Server(config).serve()
        return

    if not args.search and not args.trends:
        parser.print_help()
        return

    components = Components(get_settings())
    await components.open()
    try:
        if args.search:
            articles = await components.aggregator.search(args.search, source=args.source)
            print("\n" + "=" * 60)
            print(f"NEWS: '{args.search}' ({len(articles)} articles)")
            print("=" * 60)
            for article in articles:
                print(f"{article.published_at:%Y-%m-%d %H:%M} [{article.source.value}] {article.title}")
                print(f"    {article.url}")
            print("=" * 60 + "\n")

        if args.trends:
            signals = await components.trend_aggregator.trends()
            print("\n" + "=" * 60)
            print("TRENDS (trailing window)")
            print("=" * 60)
            for s in signals:
                print(f"{s.category:<20} {s.direction:<7} {s.article_count:>5}  {s.change_percent:+.1f}%")
            print("=" * 60 + "\n")
    finally:
        await components.close()


def main():
    """Entry point for CLI."""
    asyncio.run(cli_main())


if __name__ == "__main__":
    main()
