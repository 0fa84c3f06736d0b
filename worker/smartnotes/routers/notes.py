from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..errors import TranscriptUnavailable
from ..models.notes import NotesRequest, NotesResponse, NotesStatus, VideoNotesRequest
from ..services import transcriber
from ..services.transcripts import acquire_transcript
from ..state import State, get_state

logger = logging.getLogger("smartnotes.routes")

router = APIRouter(tags=["notes"])


@router.post("/notes", response_model=NotesResponse, status_code=201)
def v1_notes(payload: NotesRequest, state: State = Depends(get_state)) -> NotesResponse:
    return state.pipeline.generate_notes(payload.transcript, payload.language)


@router.post("/notes/video", response_model=NotesResponse, status_code=201)
def v1_notes_from_video(payload: VideoNotesRequest, state: State = Depends(get_state)):
    video_url = payload.video_url.strip()
    if not video_url:
        raise HTTPException(status_code=400, detail="videoUrl is required")

    settings = state.settings
    try:
        transcript = acquire_transcript(video_url, settings.caption_language, settings.min_transcript_chars)
        if transcript is None:
            transcript = transcriber.transcribe_video(state, video_url)
    except TranscriptUnavailable as e:
        logger.error(f"could not obtain transcript for {video_url}: {e}")
        failed = NotesResponse(
            language=payload.language,
            status=NotesStatus.error,
            error=f"Failed to get transcript: {e}",
            video_url=video_url,
        )
        return JSONResponse(status_code=500, content=failed.model_dump(mode="json", by_alias=True))

    notes = state.pipeline.generate_notes(transcript, payload.language)
    return notes.model_copy(update={"video_url": video_url})
