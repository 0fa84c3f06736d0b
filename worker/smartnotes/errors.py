from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class NotesPipelineError(Exception):
    """Base class for failures the notes pipeline knows how to absorb."""


class BackendUnavailable(NotesPipelineError):
    """The text-generation backend failed or returned nothing."""


class MalformedOutput(NotesPipelineError):
    """Backend output could not be repaired into the expected structure."""


class NoTopicsExtracted(NotesPipelineError):
    """Every topic extraction attempt was exhausted without a usable list."""


class ContentGenerationExhausted(NotesPipelineError):
    """Every content attempt for a topic was exhausted."""


class TotalPipelineFailure(NotesPipelineError):
    """The simple-notes tier failed as well; only the emergency tier is left."""


class TranscriptUnavailable(NotesPipelineError):
    """Neither captions nor speech recognition produced a transcript."""


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException):  # type: ignore[unused-variable]
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):  # type: ignore[unused-variable]
        return JSONResponse(status_code=500, content=ErrorResponse(error="internal error").model_dump())
