from __future__ import annotations

import logging
import re

from ..models.notes import SubtopicContent, TopicContent, TopicStructure

logger = logging.getLogger("smartnotes.fallbacks")

PLAIN_TEXT_MAX_CHARS = 500

_JSON_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def _truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def from_plain_text(raw_response: str, source_topic: TopicStructure, max_chars: int = PLAIN_TEXT_MAX_CHARS) -> TopicContent:
    """Build usable content from a response that never mapped to JSON.

    When the topic has expected subtopics the same text is repeated under
    each of them, so it is cut to ``max_chars``. A lone ``Summary`` subtopic
    carries the full text.
    """
    logger.info("building content from plain text", extra={"topic": source_topic.main_topic})
    cleaned = _JSON_FENCE_RE.sub("", raw_response or "").strip()

    expected = [s for s in source_topic.subtopics if s and s.strip()]
    if expected:
        filler = _truncate(cleaned, max_chars)
        subtopics = [
            SubtopicContent(
                title=title,
                description="Content extracted from video transcript",
                content=filler,
            )
            for title in expected
        ]
    else:
        subtopics = [
            SubtopicContent(
                title="Summary",
                description="Generated content from video transcript",
                content=cleaned,
            )
        ]
    return TopicContent(title=source_topic.main_topic, subtopics=subtopics)


def placeholder_content(source_topic: TopicStructure) -> TopicContent:
    """Content for a topic whose generation produced nothing at all."""
    subtopics = [
        SubtopicContent(
            title=title,
            description="Content generation in progress",
            content="Detailed content will be added here.",
        )
        for title in source_topic.subtopics
        if title and title.strip()
    ]
    if not subtopics:
        subtopics.append(
            SubtopicContent(
                title="Summary",
                description="Content not available",
                content="Unable to generate content at this time.",
            )
        )
    return TopicContent(title=source_topic.main_topic, subtopics=subtopics)
