# --- File: hotelops/main.py ---
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hotelops.api.public import router as public_router
from hotelops.api.v1.router import router as api_v1_router
from hotelops.config.settings import settings
from hotelops.core.logging import setup_logging
from hotelops.core.middleware import register_exception_handlers, register_middlewares
from hotelops.db.init_db import init_db


def create_app() -> FastAPI:
    """
    Build the API: logging, CORS, request context middleware, error
    envelopes, the versioned guest/staff/front-desk routes under
    API_V1_STR and the public short-link and health routes at the root.
    """
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    allow_origins = settings.CORS_ORIGINS or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)
    app.include_router(public_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        if not settings.is_production():
            # Production schemas are managed by migrations
            init_db()

    return app


app = create_app()
