"""
clipqueue service: conversion queue control over HTTP.

Wiring:
    RuntimeConfig → JsonStateStore → LocalEncoder ─┐
                                   EventBus ───────┼→ EventSynchronizer
                     JobQueueOrchestrator ─────────┘

Startup restores persisted history and settings, then loads presets.
A preset failure at startup is logged; the first submission retries it.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import RuntimeConfig
from .encoder.base import EncoderCollaborator
from .encoder.local import LocalEncoder
from .events.bus import EventBus
from .events.synchronizer import EventSynchronizer
from .jobs.orchestrator import JobQueueOrchestrator
from .persistence.store import JsonStateStore
from .presets.errors import PresetUnavailableError
from .routes import control

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[RuntimeConfig] = None,
    encoder: Optional[EncoderCollaborator] = None,
    bus: Optional[EventBus] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Runtime configuration (read from the environment by default)
        encoder: Encoder collaborator (a LocalEncoder over the data dir by default)
        bus: Event bus the encoder publishes on (the LocalEncoder's bus by default)
    """
    config = config or RuntimeConfig.from_env()

    if encoder is None:
        encoder = LocalEncoder(bus=bus, store=JsonStateStore(config.data_dir))
    if bus is None:
        bus = encoder.bus if isinstance(encoder, LocalEncoder) else EventBus()

    orchestrator = JobQueueOrchestrator(encoder)
    synchronizer = EventSynchronizer(orchestrator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        detach = synchronizer.attach(bus)
        if isinstance(encoder, LocalEncoder):
            await encoder.restore()
        await orchestrator.load_settings()
        await orchestrator.refresh_history()
        try:
            await orchestrator.load_presets()
        except PresetUnavailableError as e:
            logger.warning(f"[MAIN] Presets unavailable at startup: {e}")
        logger.info("[MAIN] clipqueue ready")
        try:
            yield
        finally:
            await orchestrator.flush_settings()
            detach()
            logger.info("[MAIN] clipqueue stopped")

    app = FastAPI(title="clipqueue", version=__version__, lifespan=lifespan)

    # CORS middleware for the desktop/web frontend (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.encoder = encoder
    app.state.bus = bus
    app.state.orchestrator = orchestrator
    app.state.synchronizer = synchronizer

    app.include_router(control.router)

    @app.get("/")
    async def root():
        return {"service": "clipqueue", "status": "running"}

    return app


def run(config: Optional[RuntimeConfig] = None) -> None:
    """
    Run the clipqueue HTTP service.

    Args:
        config: Runtime configuration (read from the environment by default)
    """
    import uvicorn

    config = config or RuntimeConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info(f"[MAIN] Data directory: {config.data_dir}")
    logger.info(f"[MAIN] Binding to: {config.host}:{config.port}")

    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    run()
