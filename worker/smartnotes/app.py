from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers.notes import router as notes_router
from .routers.backend_status import router as backend_status_router
from .config import Settings, load_settings
from .logging import setup_logging, install_app_logging
from .errors import install_error_handlers
from .services.backend import TextGenerationBackend
from .state import build_state

logger = logging.getLogger("smartnotes.app")


def create_app(settings: Optional[Settings] = None, backend: Optional[TextGenerationBackend] = None) -> FastAPI:
    # Keep huggingface downloads (faster-whisper models) quiet and single-threaded
    os.environ.setdefault("HF_HUB_DISABLE_PROGRESS_BARS", "1")
    os.environ.setdefault("HF_HUB_MAX_WORKERS", "1")

    settings = settings or load_settings()
    setup_logging()

    tmp_dir = (Path(__file__).resolve().parent.parent / settings.tmp_dir).resolve()
    tmp_dir.mkdir(parents=True, exist_ok=True)
    state = build_state(settings, tmp_dir, backend=backend)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        logger.info("shutting down topic content pool")
        state.coordinator.shutdown(settings.shutdown_grace_s)

    app = FastAPI(title="SmartNotes Worker", version="1.0.0", lifespan=lifespan)

    # Attach config/state
    app.state.settings = settings
    app.state.state = state

    # CORS
    allow = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_app_logging(app)
    install_error_handlers(app)

    # Versioned API
    app.include_router(notes_router, prefix="/v1")
    app.include_router(backend_status_router, prefix="/v1")

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return {"status": "ok"}
    return app


# Convenience for `uvicorn smartnotes.app:app`
app = create_app()
