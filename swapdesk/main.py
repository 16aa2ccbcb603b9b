import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import balances, health, tokens, trade
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .services.session import SwapSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], SwapSession]


def create_app(session_factory: Optional[SessionFactory] = None) -> FastAPI:
    """Build the API. ``session_factory`` defaults to a session from settings."""
    factory = session_factory or SwapSession.from_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        session = factory()
        app.state.session = session
        # Warm start now; the authoritative token list loads in the background
        session.tokens.start()
        logger.info("swapdesk started (catalog warm: %s)", session.tokens.is_loaded)
        try:
            yield
        finally:
            await session.aclose()
            app.state.session = None

    app = FastAPI(
        title="swapdesk",
        description="Multi-chain balance and trade-quote aggregation API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(tokens.router, tags=["Tokens"])
    app.include_router(balances.router, tags=["Balances"])
    app.include_router(trade.router, tags=["Trade"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "swapdesk",
            "version": __version__,
            "docs": "/docs",
            "health": "/healthz",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run(
        "swapdesk.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
