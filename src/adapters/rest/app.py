"""
FastAPI application: REST/WebSocket adapter for the workspace assistant.

Usage:
    python run_api.py

Or directly:
    uvicorn adapters.rest.app:app --host 0.0.0.0 --port 3000 --reload
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure src/ is on sys.path when invoked via uvicorn directly
_src_dir = Path(__file__).resolve().parent.parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from infrastructure.config import Settings
from factory import ServiceFactory
from adapters.rest.dependencies import set_factory
from adapters.rest.routers import chat_ws, files
from adapters.rest.schemas import HealthOut

__version__ = "0.1.0"


def create_app(factory: Optional[ServiceFactory] = None) -> FastAPI:
    """Build the app. Without a factory, one is built from the environment at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if factory is None:
            config = Settings.from_env()
            logging.basicConfig(
                level=config.log_level,
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            )
            built = ServiceFactory(config)
            built.initialize()
            set_factory(built)
        else:
            set_factory(factory)
        yield
        set_factory(None)

    app = FastAPI(
        title="Workspace Assistant",
        version=__version__,
        description="Analyst and executor agents working on a local workspace.",
        lifespan=lifespan,
    )

    # CORS: permissive for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(files.router)
    app.include_router(chat_ws.router)

    @app.get("/health", tags=["health"], response_model=HealthOut)
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
