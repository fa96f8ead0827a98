from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import Settings, settings as default_settings
from app.core.errors import AppError
from app.db import Base, make_engine, make_session_factory
from app.services.analytics import AnalyticsService
from app.time_utils import Clock, isoformat_z, utc_now

# Register tables on Base.metadata before create_all
from app.models import chat as _chat_models  # noqa: F401
from app.models import tenant as _tenant_models  # noqa: F401

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None, clock: Clock = utc_now) -> FastAPI:
    cfg = app_settings or default_settings

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    analytics_dir = cfg.resolved_analytics_dir()
    analytics_dir.mkdir(parents=True, exist_ok=True)

    engine = make_engine(cfg.resolved_database_url())
    # Minimal & safe: create tables if they don't exist
    Base.metadata.create_all(bind=engine)

    # -------------------------------------------------------------------------
    # Create app
    # -------------------------------------------------------------------------
    app = FastAPI(title=cfg.app_name, version=cfg.app_version)
    app.state.settings = cfg
    app.state.clock = clock
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.analytics = AnalyticsService.from_directory(analytics_dir, clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def _app_error(_request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("Unhandled %s: %s", type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # -------------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------------
    from app.routes.analytics import router as analytics_router
    from app.routes.chat import router as chat_router
    from app.routes.events import router as events_router
    from app.routes.tenants import router as tenants_router

    app.include_router(events_router, prefix="/api/analytics", tags=["analytics"])
    app.include_router(analytics_router, prefix="/api/analytics", tags=["analytics"])
    app.include_router(tenants_router, prefix="/api/config", tags=["config"])
    app.include_router(chat_router, prefix="/api/chat", tags=["chat"])

    @app.get("/api")
    def api_index():
        return {
            "status": "ok",
            "message": cfg.app_name,
            "version": cfg.app_version,
            "endpoints": {
                "config": "/api/config",
                "chat": "/api/chat",
                "analytics": "/api/analytics",
            },
        }

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "timestamp": isoformat_z(clock()),
            "environment": cfg.environment,
            "directories": {
                "data": cfg.data_dir.exists(),
                "analytics": analytics_dir.exists(),
            },
        }

    logger.info("App created: data_dir=%s analytics_dir=%s", cfg.data_dir, analytics_dir)
    return app
