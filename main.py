"""
Gmail Notifier — application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from api.identity import check_signing_secret
from api.middleware import register_exception_handlers, register_middleware
from api.routes import router
from config.settings import config
from database.session import init_db

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3", "google", "grpc"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_signing_secret(config)
    logger.info("Creating database tables…")
    await init_db()
    if not (config.google_client_id and config.google_client_secret):
        logger.warning("GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not set — OAuth flow will fail")
    logger.info("Application ready to accept requests.")
    yield


def create_app(*, init_database: bool = True) -> FastAPI:
    app = FastAPI(
        title="Gmail Notifier",
        version="1.0.0",
        description="Authorize Gmail read access, schedule checks and edit the search query.",
        lifespan=lifespan if init_database else None,
    )

    register_middleware(app)
    register_exception_handlers(app)
    app.include_router(router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
