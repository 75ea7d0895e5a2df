"""Application factory for the PassiveGenius FastAPI backend."""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .export import PDFExporter
from .journey import SessionRegistry
from .logging_config import configure_logging
from .routers import community, plans, sessions
from .storage import LocalStorage, Stores


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _resolve_allowed_origins() -> list[str]:
    """Return allowed origins, optionally sourced from an env override."""

    raw = os.getenv("PASSIVEGENIUS_ALLOWED_ORIGINS")
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return DEFAULT_ALLOWED_ORIGINS


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = settings or get_settings()
    configure_logging(settings.log_level, json_logs=settings.json_logs)

    app = FastAPI(
        title="PassiveGenius Backend",
        version="0.1.0",
        description="AI-assisted passive income idea and launch plan backend.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_resolve_allowed_origins(),
        allow_origin_regex=r"http://localhost:\d+$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    stores = Stores(LocalStorage(settings.storage_dir))
    app.state.settings = settings
    app.state.registry = SessionRegistry(stores, notification_seconds=settings.notification_seconds)
    app.state.exporter = PDFExporter()
    app.include_router(sessions.router)
    app.include_router(plans.router)
    app.include_router(community.router)
    return app


app = create_app()
