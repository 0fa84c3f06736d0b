"""Transcript acquisition from existing video captions."""

from __future__ import annotations

import logging
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("smartnotes.transcripts")

MIN_TRANSCRIPT_CHARS = 100

_HEADER_RE = re.compile(r"^(WEBVTT|Kind:|Language:|NOTE\b).*$", re.MULTILINE)
_VTT_TIMING_RE = re.compile(r"\d{2}:\d{2}:\d{2}\.\d{3}\s+-->\s+\d{2}:\d{2}:\d{2}\.\d{3}.*")
_SRT_TIMING_RE = re.compile(r"^\d+\s*\n\d{2}:\d{2}:\d{2},\d{3}\s+-->\s+\d{2}:\d{2}:\d{2},\d{3}.*$", re.MULTILINE)
_INLINE_TS_RE = re.compile(r"<\d{2}:\d{2}:\d{2}\.\d{3}>")
_TAG_RE = re.compile(r"<[^>]+>")


def clean_captions(raw: str) -> str:
    """Reduce a VTT/SRT caption file to plain transcript text.

    Automatic captions repeat each line while it scrolls, so consecutive
    duplicate lines are collapsed.
    """
    text = _HEADER_RE.sub("", raw or "")
    text = _SRT_TIMING_RE.sub("", text)
    text = _VTT_TIMING_RE.sub("", text)
    text = _INLINE_TS_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    lines: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or (lines and lines[-1] == line):
            continue
        lines.append(line)
    return "\n".join(lines).strip()


def usable_transcript(text: Optional[str], min_chars: int = MIN_TRANSCRIPT_CHARS) -> Optional[str]:
    """Blank or short transcripts count as missing."""
    if text is None:
        return None
    text = text.strip()
    if len(text) < min_chars:
        return None
    return text


def _match_language(available: Dict[str, Any], preferred: str) -> Optional[str]:
    if preferred in available:
        return preferred
    for lang in available:
        if lang.split("-")[0] == preferred:
            return lang
    return None


def pick_caption_language(manual: Dict[str, Any], automatic: Dict[str, Any], preferred: str) -> Optional[str]:
    """Preferred language (manual, then automatic) before any other language."""
    for tracks in (manual, automatic):
        lang = _match_language(tracks, preferred)
        if lang is not None:
            return lang
    for tracks in (manual, automatic):
        if tracks:
            return next(iter(tracks))
    return None


def fetch_captions(video_url: str, language: str = "en") -> Optional[str]:
    """Download manual (preferred) or automatic captions with yt-dlp."""
    import yt_dlp  # lazy import so the pipeline works without it

    with tempfile.TemporaryDirectory(prefix="smartnotes-captions-") as tmp:
        opts: Dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "writesubtitles": True,
            "writeautomaticsub": True,
            "subtitlesformat": "vtt",
            "outtmpl": str(Path(tmp) / "%(id)s.%(ext)s"),
        }
        with yt_dlp.YoutubeDL(opts) as ydl:
            info = ydl.extract_info(video_url, download=False)
            selected = pick_caption_language(info.get("subtitles") or {}, info.get("automatic_captions") or {}, language)
            if selected is None:
                logger.info("no captions available", extra={"video_url": video_url})
                return None
            opts["subtitleslangs"] = [selected]
        with yt_dlp.YoutubeDL(opts) as ydl:
            ydl.download([video_url])
        for path in sorted(Path(tmp).glob("*.vtt")):
            text = clean_captions(path.read_text(encoding="utf-8", errors="replace"))
            if text:
                logger.info("captions found", extra={"language": selected, "chars": len(text)})
                return text
    return None


def acquire_transcript(video_url: str, language: str = "en", min_chars: int = MIN_TRANSCRIPT_CHARS) -> Optional[str]:
    """Existing captions for ``video_url``; ``None`` means use speech-to-text."""
    try:
        text = fetch_captions(video_url, language)
    except Exception as e:
        logger.warning(f"could not fetch existing captions: {e}")
        return None
    return usable_transcript(text, min_chars)
