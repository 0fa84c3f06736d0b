from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import TranscriptUnavailable
from ..state import State

logger = logging.getLogger("smartnotes.transcriber")


def _get_or_load_model(state: State):
    if state.whisper_model is not None:
        return state.whisper_model  # type: ignore[return-value]
    from faster_whisper import WhisperModel  # lazy import to avoid test env dependency

    os.environ.setdefault("HF_HUB_DISABLE_PROGRESS_BARS", "1")
    settings = state.settings
    model_dir = os.environ.get("SMARTNOTES_WHISPER_MODEL_DIR")

    # Prefer on-disk model if valid; otherwise fall back to model name (downloadable)
    target: str = settings.whisper_model_size
    if model_dir:
        p = Path(model_dir)
        if p.is_dir() and (p / "model.bin").exists() and (p / "config.json").exists():
            target = model_dir
        else:
            logger.warning(
                f"Ignoring SMARTNOTES_WHISPER_MODEL_DIR={model_dir} (missing model.bin/config.json); "
                f"falling back to '{settings.whisper_model_size}'"
            )

    state.whisper_model = WhisperModel(target, device=settings.whisper_device, compute_type=settings.whisper_compute_type)
    return state.whisper_model


def download_audio(state: State, video_url: str) -> Path:
    import yt_dlp  # lazy import

    state.tmp_dir.mkdir(parents=True, exist_ok=True)
    stem = f"yt_audio_{uuid.uuid4().hex}"
    opts: Dict[str, Any] = {
        "quiet": True,
        "no_warnings": True,
        "format": "bestaudio/best",
        "outtmpl": str(state.tmp_dir / f"{stem}.%(ext)s"),
    }
    with yt_dlp.YoutubeDL(opts) as ydl:
        ydl.download([video_url])
    matches = sorted(state.tmp_dir.glob(f"{stem}.*"))
    if not matches:
        raise TranscriptUnavailable(f"audio download produced no file for {video_url}")
    return matches[0]


def transcribe_file(state: State, path: Path, language: Optional[str] = None, beam_size: int = 5) -> str:
    model = _get_or_load_model(state)
    # faster-whisper decodes the container itself, so no resampling step here.
    segments, info = model.transcribe(
        str(path),
        language=language,
        beam_size=int(beam_size),
        vad_filter=True,
        vad_parameters=dict(min_silence_duration_ms=300),
        condition_on_previous_text=True,
    )
    texts: List[str] = [seg.text.strip() for seg in segments if seg.text.strip()]
    logger.info(
        "transcription finished",
        extra={"language": getattr(info, "language", None), "duration": float(getattr(info, "duration", 0.0)), "segments": len(texts)},
    )
    return " ".join(texts).strip()


def transcribe_video(state: State, video_url: str, language: Optional[str] = None) -> str:
    """Download the audio track and run speech recognition over it."""
    logger.info("no usable captions; transcribing audio", extra={"video_url": video_url})
    try:
        audio = download_audio(state, video_url)
    except TranscriptUnavailable:
        raise
    except Exception as e:
        raise TranscriptUnavailable(f"audio download failed: {e}") from e
    try:
        text = transcribe_file(state, audio, language=language)
    except Exception as e:
        raise TranscriptUnavailable(f"speech recognition failed: {e}") from e
    finally:
        try:
            audio.unlink()
        except OSError:
            logger.warning(f"could not delete {audio.name}")
    if not text:
        raise TranscriptUnavailable("speech recognition produced no text")
    return text
