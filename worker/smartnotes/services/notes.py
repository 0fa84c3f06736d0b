"""Notes generation: topic extraction, concurrent content, tiered fallback.

``NotesPipeline.generate_notes`` is the only entry point the HTTP layer
needs. It never raises; how far the pipeline had to degrade is reported in
``NotesResponse.status``:

- ``success``: topics extracted and content generated per topic (tier 1);
- ``fallback``: one plain-text notes call over the whole transcript (tier 2);
- ``emergency_fallback``: the transcript itself, truncated (tier 3, no I/O).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..errors import NoTopicsExtracted, NotesPipelineError, TotalPipelineFailure
from ..models.notes import NotesResponse, NotesStatus, SubtopicContent, TopicContent
from .backend import TextGenerationBackend
from .fanout import FanOutCoordinator
from .prompts import simple_notes_prompt
from .spelling import SpellCorrector
from .topics import TopicExtractor

logger = logging.getLogger("smartnotes.pipeline")

FALLBACK_TITLE = "Video Notes"
EMERGENCY_MAX_CHARS = 5000


class Tier(str, Enum):
    structured = "structured"
    simple = "simple"
    emergency = "emergency"


@dataclass
class CascadeResult:
    response: NotesResponse
    transitions: List[Tuple[Tier, Tier]] = field(default_factory=list)

    @property
    def tier(self) -> Tier:
        return self.transitions[-1][1] if self.transitions else Tier.structured


def _simple_notes_response(notes: str, language: Optional[str], reason: str) -> NotesResponse:
    topic = TopicContent(
        title=FALLBACK_TITLE,
        subtopics=[
            SubtopicContent(
                title="Summary",
                description="Generated notes from video transcript",
                content=notes,
            )
        ],
    )
    return NotesResponse(topics=[topic], language=language, status=NotesStatus.fallback, error=reason)


def emergency_response(transcript: Optional[str], language: Optional[str], reason: str, max_chars: int = EMERGENCY_MAX_CHARS) -> NotesResponse:
    """The last tier. Performs no I/O and cannot fail."""
    topic = TopicContent(
        title=FALLBACK_TITLE,
        subtopics=[
            SubtopicContent(
                title="Transcript",
                description="Raw transcript from video",
                content=(transcript or "")[:max_chars],
            )
        ],
    )
    return NotesResponse(topics=[topic], language=language, status=NotesStatus.emergency_fallback, error=reason)


class NotesPipeline:
    def __init__(
        self,
        backend: TextGenerationBackend,
        model: str,
        extractor: TopicExtractor,
        coordinator: FanOutCoordinator,
        spell_corrector: Optional[SpellCorrector] = None,
        emergency_max_chars: int = EMERGENCY_MAX_CHARS,
    ) -> None:
        self.backend = backend
        self.model = model
        self.extractor = extractor
        self.coordinator = coordinator
        self.spell_corrector = spell_corrector
        self.emergency_max_chars = emergency_max_chars

    def _correct(self, transcript: str, language: Optional[str]) -> str:
        if self.spell_corrector is None:
            return transcript
        try:
            corrected = self.spell_corrector.correct(transcript, language)
        except Exception as e:
            logger.warning(f"spell correction failed or skipped: {e}")
            return transcript
        return corrected if corrected else transcript

    def _structured(self, transcript: str, language: Optional[str]) -> NotesResponse:
        topics = self.extractor.extract_topics(transcript, language)
        if not topics:
            raise NoTopicsExtracted("topic list is empty")
        for index, topic in enumerate(topics, start=1):
            logger.info(f"topic {index}. {topic.main_topic} ({len(topic.subtopics)} subtopics)")
        contents = self.coordinator.generate_all(topics, transcript, language)
        return NotesResponse(topics=contents, language=language, status=NotesStatus.success)

    def _simple(self, transcript: str, language: Optional[str], reason: str) -> NotesResponse:
        try:
            notes = self.backend.generate(self.model, simple_notes_prompt(transcript, language))
        except Exception as e:
            raise TotalPipelineFailure(f"simple notes failed: {e}") from e
        if not notes or not notes.strip():
            raise TotalPipelineFailure("simple notes failed: empty response")
        return _simple_notes_response(notes.strip(), language, reason)

    def run(self, transcript: Optional[str], language: Optional[str]) -> CascadeResult:
        original = transcript or ""
        logger.info("starting notes generation", extra={"transcript_chars": len(original), "language": language})
        corrected = self._correct(original, language)

        transitions: List[Tuple[Tier, Tier]] = []
        tier = Tier.structured
        reason = ""
        while True:
            try:
                if tier is Tier.structured:
                    response = self._structured(corrected, language)
                elif tier is Tier.simple:
                    response = self._simple(corrected, language, reason)
                else:
                    response = emergency_response(original, language, reason, self.emergency_max_chars)
            except Exception as e:
                if tier is Tier.emergency:
                    raise
                if isinstance(e, NotesPipelineError):
                    reason = str(e)
                else:
                    logger.exception(f"{tier.value} tier crashed")
                    reason = f"{tier.value} tier failed: {e}"
            else:
                logger.info("notes generation finished", extra={"status": response.status.value, "topics": len(response.topics)})
                return CascadeResult(response=response, transitions=transitions)
            next_tier = Tier.simple if tier is Tier.structured else Tier.emergency
            logger.warning(f"falling back from {tier.value} to {next_tier.value} tier: {reason}")
            transitions.append((tier, next_tier))
            tier = next_tier

    def generate_notes(self, transcript: Optional[str], language: Optional[str]) -> NotesResponse:
        try:
            return self.run(transcript, language).response
        except Exception as e:
            logger.exception("notes pipeline failed outside the cascade")
            return emergency_response(transcript, language, f"pipeline failed: {e}", self.emergency_max_chars)
