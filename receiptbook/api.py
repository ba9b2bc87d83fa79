"""
FastAPI app entry point aggregating per-domain routers under receiptbook/routes.
Run with `uvicorn receiptbook.api:app` or `receiptbook serve`.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .db import Storage
from .migrations import ensure_schema
from .services.settings_svc import ensure_default_settings


def create_app(storage: Optional[Storage] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        st = app.state.storage
        # Schema failures propagate and abort startup.
        ensure_schema(st)
        ensure_default_settings(st)
        yield

    app = FastAPI(title="receiptbook-api", version=__version__, lifespan=lifespan)
    app.state.storage = storage or Storage.from_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
            "http://127.0.0.1:19006",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers (split by business domain)
    from .routes import base as base_routes
    from .routes import profile as profile_routes
    from .routes import receipts as receipts_routes
    from .routes import inventory as inventory_routes
    from .routes import settings as settings_routes
    from .routes import reports as reports_routes
    from .routes import activity as activity_routes

    app.include_router(base_routes.router)
    app.include_router(profile_routes.router)
    app.include_router(receipts_routes.router)
    app.include_router(inventory_routes.router)
    app.include_router(settings_routes.router)
    app.include_router(reports_routes.router)
    app.include_router(activity_routes.router)
    return app


app = create_app()
