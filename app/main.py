"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from app.api import router
from app.config import get_settings
from backtest.config import get_backtest_settings
from backtest.orchestrator import create_orchestrator
from core.strategy import list_strategies

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    backtest_settings = get_backtest_settings()
    orchestrator, client = create_orchestrator(backtest_settings)
    app.state.orchestrator = orchestrator

    logger.info(
        "Backtest service ready: interval=%s page_size=%d page_delay=%.2fs strategies=%s",
        backtest_settings.interval,
        backtest_settings.page_size,
        backtest_settings.page_delay_seconds,
        ", ".join(list_strategies()),
    )
    try:
        yield
    finally:
        await client.close()
        app.state.orchestrator = None
        logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="EMA Backtester",
    description="Historical strategy backtests on Binance klines",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "EMA Backtester",
        "version": "0.1.0",
        "docs": "/docs",
        "strategies": list_strategies(),
    }


@app.get("/health")
async def health(request: Request):
    """Health check endpoint. ``ready`` turns true once the lifespan has wired the orchestrator."""
    ready = getattr(request.app.state, "orchestrator", None) is not None
    return {"status": "healthy", "ready": ready}


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
