from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from fastapi import Request

from .config import Settings
from .services.backend import TextGenerationBackend, build_backend
from .services.content import ContentGenerator
from .services.fanout import FanOutCoordinator
from .services.notes import NotesPipeline
from .services.spelling import SpellCorrector
from .services.topics import TopicExtractor


@dataclass
class State:
    """Application state shared across requests.

    Attached to FastAPI's app.state. The fan-out pool inside ``coordinator``
    lives as long as the app does.
    """

    settings: Settings
    tmp_dir: Path
    backend: TextGenerationBackend
    coordinator: FanOutCoordinator
    pipeline: NotesPipeline

    # Whisper model cache
    whisper_model: Any | None = None


def build_state(settings: Settings, tmp_dir: Path, backend: Optional[TextGenerationBackend] = None) -> State:
    backend = backend or build_backend(settings)
    model = settings.model_name
    generator = ContentGenerator(
        backend,
        model,
        max_attempts=settings.content_max_attempts,
        plain_text_max_chars=settings.plain_text_max_chars,
    )
    coordinator = FanOutCoordinator(
        generator,
        max_workers=settings.fanout_workers,
        task_timeout=settings.fanout_task_timeout_s,
    )
    extractor = TopicExtractor(
        backend,
        model,
        max_attempts=settings.topic_max_attempts,
        retry_delay=settings.topic_retry_delay_s,
    )
    pipeline = NotesPipeline(
        backend,
        model,
        extractor,
        coordinator,
        spell_corrector=SpellCorrector(backend, model, enabled=settings.spell_correction),
        emergency_max_chars=settings.emergency_max_chars,
    )
    return State(settings=settings, tmp_dir=tmp_dir, backend=backend, coordinator=coordinator, pipeline=pipeline)


def get_state(request: Request) -> State:  # FastAPI dependency helper
    return request.app.state.state
