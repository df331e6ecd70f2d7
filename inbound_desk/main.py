# inbound_desk/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inbound_desk.api.sessions import SessionRegistry
from inbound_desk.clients.base import DataApi
from inbound_desk.clients.data_api import HttpDataApi
from inbound_desk.core.config import AppSettings, get_settings
from inbound_desk.core.logging import setup_logging
from inbound_desk.http_problem_handlers import register_exception_handlers
from inbound_desk.obs.metrics import PrometheusMiddleware
from inbound_desk.router_mount import mount_routers

logger = logging.getLogger("inbound_desk")


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned: Optional[HttpDataApi] = None
    if app.state.data_api is None:
        owned = HttpDataApi.from_settings(app.state.settings)
        app.state.data_api = owned
        logger.info("data API client ready: %s", app.state.settings.DATA_API_BASE_URL)
    try:
        yield
    finally:
        if owned is not None:
            await owned.aclose()
            app.state.data_api = None


def create_app(settings: Optional[AppSettings] = None, data_api: Optional[DataApi] = None) -> FastAPI:
    """
    Build the receiving desk app.

    data_api given: used as-is and never closed here (tests, embedding).
    Otherwise the lifespan opens an HttpDataApi from settings.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, json=settings.JSON_LOG)

    app = FastAPI(
        title="Inbound Desk",
        version="1.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.data_api = data_api
    app.state.sessions = SessionRegistry(
        idle_ttl_s=settings.SESSION_IDLE_TTL_S, max_sessions=settings.SESSION_MAX
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://127.0.0.1:5173",
            "http://localhost:5173",
            "http://127.0.0.1:8000",
            "http://localhost:8000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(PrometheusMiddleware)

    register_exception_handlers(app)
    mount_routers(app)
    return app
