# backend/decembrrr/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .db import Base, build_engine, build_session_factory
from .errors import AppError, resolve_error
from .logging_config import configure_logging
from .clients.ledger_rpc import LedgerRpcClient

from .middleware.request_id import RequestIdMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.classes import router as classes_router
from .routers.payments import router as payments_router
from .routers.calendar import router as calendar_router
from .routers.analytics import router as analytics_router

API_PREFIX = "/api"

log = logging.getLogger("decembrrr.app")


def _cors_origins(s: Settings) -> list[str]:
    val = s.cors_allow_origins
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def _wants_detail(request: Request, s: Settings) -> bool:
    return s.is_local or request.headers.get("X-Debug") == "1"


def create_app(settings: Optional[Settings] = None, *, ledger_rpc: Optional[LedgerRpcClient] = None) -> FastAPI:
    """
    Build the app with its engine, session factory and RPC client on app.state.
    Nothing is held in module globals beyond the default `app` below.
    """
    s = settings or default_settings

    engine = build_engine(s.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if s.is_local:
            # local runs skip alembic; every other env migrates explicitly
            Base.metadata.create_all(bind=engine)
        yield
        engine.dispose()

    app = FastAPI(title="Decembrrr", version=s.app_version, lifespan=lifespan)
    app.state.settings = s
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.ledger_rpc = ledger_rpc or LedgerRpcClient.from_settings(s)

    # later add_middleware calls wrap earlier ones: request id is set before request logging runs
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(s),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error("app_error", extra={"detail": f"{exc.code}: {exc.detail}"})
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(include_detail=_wants_detail(request, s)),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        err = resolve_error(exc)
        log.error("unhandled_error", exc_info=exc, extra={"detail": f"{err.code}: {err.detail}"})
        return JSONResponse(
            status_code=err.status_code,
            content=err.to_payload(include_detail=_wants_detail(request, s)),
        )

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(classes_router, prefix=API_PREFIX)
    app.include_router(payments_router, prefix=API_PREFIX)
    app.include_router(calendar_router, prefix=API_PREFIX)
    app.include_router(analytics_router, prefix=API_PREFIX)

    return app


configure_logging()
app = create_app()
