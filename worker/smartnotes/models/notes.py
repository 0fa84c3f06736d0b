from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TopicStructure(_WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    main_topic: str
    subtopics: List[str] = Field(default_factory=list)


class ImagePlaceholder(_WireModel):
    position: int = Field(0, ge=0)
    description: str = ""
    image_url: Optional[str] = None
    placeholder: bool = True


class TableData(_WireModel):
    position: int = Field(0, ge=0)
    title: str = ""
    headers: List[str] = Field(default_factory=list)
    # Row lengths are not checked against headers.
    rows: List[List[str]] = Field(default_factory=list)


class SubtopicContent(_WireModel):
    title: str
    description: str = ""
    content: str = ""
    images: List[ImagePlaceholder] = Field(default_factory=list)
    tables: List[TableData] = Field(default_factory=list)


class TopicContent(_WireModel):
    title: str
    subtopics: List[SubtopicContent] = Field(default_factory=list)


class NotesStatus(str, Enum):
    success = "success"
    fallback = "fallback"
    emergency_fallback = "emergency_fallback"
    error = "error"


class NotesResponse(_WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    topics: List[TopicContent] = Field(default_factory=list)
    language: Optional[str] = None
    status: NotesStatus
    error: Optional[str] = None
    video_url: Optional[str] = Field(None, description="Source video, set by the video route only")


class NotesRequest(_WireModel):
    transcript: str = Field(..., min_length=1)
    language: str = Field("English", description="Language the notes are written in")


class VideoNotesRequest(_WireModel):
    video_url: str
    language: str = Field("English", description="Language the notes are written in")


class BackendStatusResponse(BaseModel):
    provider: str
    model: str
    configured: bool
    probe_ok: bool
    probe_sample: Optional[str] = None
    error: Optional[str] = None
