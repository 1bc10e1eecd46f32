from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.categories import router as categories_router
from app.api.errors import register_exception_handlers
from app.api.health import router as health_router
from app.api.task_items import router as task_items_router
from app.api.tasks import router as tasks_router
from app.api.uploads import router as uploads_router
from app.config import Settings, settings as default_settings
from app.infrastructure.container import build_ingestor, build_store
from app.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg: Settings = app.state.settings
    Path(cfg.UPLOADS_DIR).mkdir(parents=True, exist_ok=True)
    app.state.store = build_store(cfg)
    app.state.ingestor = build_ingestor(cfg)
    logger.info("Storage ready: %s", cfg.storage_source)
    try:
        yield
    finally:
        app.state.store.close()
        logger.info("Storage closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    cfg = settings or default_settings
    setup_logging(cfg.LOG_LEVEL)

    app = FastAPI(
        title=cfg.APP_TITLE,
        description="Task Management API with Categories, Tasks and Task Items",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests"""
        start_time = time.time()

        logger.info("Request: %s %s", request.method, request.url)

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info("Response: %s - %.4fs", response.status_code, process_time)

        response.headers["X-Process-Time"] = str(process_time)

        return response

    origins = cfg.cors_origins_list()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Process-Time"],
    )

    register_exception_handlers(app)

    #router
    app.include_router(health_router)
    app.include_router(categories_router)
    app.include_router(tasks_router)
    app.include_router(task_items_router)
    app.include_router(uploads_router)

    # directory is created on startup by the lifespan
    app.mount(cfg.STATIC_PREFIX, StaticFiles(directory=cfg.UPLOADS_DIR, check_dir=False), name="static")

    return app


app = create_app()
