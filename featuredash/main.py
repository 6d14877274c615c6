"""featuredash FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from featuredash import config
from featuredash.feature_store import feature_store
from featuredash.file_watcher import file_watcher
from featuredash.models import Metadata
from featuredash.observability import initialize as initialize_observability, shutdown as shutdown_observability
from featuredash.routers.features import features_router
from featuredash.routers.insights import insights_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("featuredash")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("featuredash backend starting up")
    initialize_observability(app)

    # Warm the store so the first request does not pay for decoding.
    snapshot = feature_store.get_snapshot()
    logger.info(f"Serving {len(snapshot.index)} features from {feature_store.features_path}")

    if config.WATCH_ENABLED:
        await file_watcher.start(feature_store)

    yield

    logger.info("featuredash backend shutting down")
    await file_watcher.stop()
    shutdown_observability(app)


app = FastAPI(
    title="featuredash API",
    description="Backend API for the features dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: allow the dashboard dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(features_router)
app.include_router(insights_router)


@app.get("/api/metadata", response_model=Metadata)
def metadata():
    """Scanner metadata (version, repository), empty when not published."""
    return feature_store.get_metadata() or Metadata()


@app.get("/api/health")
def health():
    """Health check endpoint."""
    snapshot = feature_store.get_snapshot()
    return {
        "status": "ok",
        "features": len(snapshot.index),
        "loadedAt": snapshot.loaded_at,
        "watcher": "running" if file_watcher.is_running else "stopped",
    }


def run() -> None:
    import uvicorn

    uvicorn.run("featuredash.main:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
