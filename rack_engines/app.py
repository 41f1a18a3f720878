"""FastAPI application wiring for the rack editor engines."""
from __future__ import annotations

import logging

from fastapi import FastAPI

from rack_engines import __version__
from rack_engines.common.health import router as health_router
from rack_engines.config import runtime_config
from rack_engines.editor.router import router as editor_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=runtime_config.get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Rack Editor Engines", version=__version__)
    app.include_router(health_router)
    app.include_router(editor_router)
    logger.info("Rack editor engines ready: %s", runtime_config.config_snapshot())
    return app
