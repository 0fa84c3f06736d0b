from __future__ import annotations

import logging
import threading
from typing import Optional

from ..errors import ContentGenerationExhausted
from ..models.notes import TopicContent, TopicStructure
from .backend import TextGenerationBackend
from .fallbacks import PLAIN_TEXT_MAX_CHARS, from_plain_text, placeholder_content
from .mapper import map_topic_content
from .prompts import content_generation_prompt
from .repair import repair_json

logger = logging.getLogger("smartnotes.content")


class ContentGenerator:
    """Detailed content for one topic. ``generate_content`` never raises.

    Outcome by what the attempts produced:
    - a payload that maps to at least one subtopic: returned as is;
    - only text that never mapped: the last text, via ``from_plain_text``;
    - nothing at all (or cancelled): ``placeholder_content``.
    """

    def __init__(
        self,
        backend: TextGenerationBackend,
        model: str,
        max_attempts: int = 2,
        plain_text_max_chars: int = PLAIN_TEXT_MAX_CHARS,
    ) -> None:
        self.backend = backend
        self.model = model
        self.max_attempts = max(1, max_attempts)
        self.plain_text_max_chars = plain_text_max_chars

    def _attempts(self, topic: TopicStructure, prompt: str, cancel_event: Optional[threading.Event]):
        """Yield (mapped content or None, raw text) for each non-empty response."""
        for attempt in range(1, self.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("content generation cancelled", extra={"topic": topic.main_topic})
                return
            logger.info(
                "generating topic content",
                extra={"topic": topic.main_topic, "attempt": attempt, "max_attempts": self.max_attempts},
            )
            try:
                response = self.backend.generate(self.model, prompt)
            except Exception as e:
                logger.warning(f"content attempt {attempt}/{self.max_attempts} for '{topic.main_topic}' failed: {e}")
                continue
            if not response or not response.strip():
                logger.warning(f"empty content response for '{topic.main_topic}'")
                continue
            yield map_topic_content(repair_json(response), topic), response

    def _generate(self, topic: TopicStructure, transcript: str, language: Optional[str], cancel_event: Optional[threading.Event]) -> TopicContent:
        prompt = content_generation_prompt(topic.main_topic, topic.subtopics, transcript, language)
        last_text: Optional[str] = None
        for content, raw in self._attempts(topic, prompt, cancel_event):
            if content is not None and content.subtopics:
                logger.info(
                    f"generated content for '{content.title}'",
                    extra={"topic": topic.main_topic, "subtopics": len(content.subtopics)},
                )
                return content
            last_text = raw
            logger.warning(f"could not map content for '{topic.main_topic}', retrying")

        if last_text is not None and not (cancel_event is not None and cancel_event.is_set()):
            return from_plain_text(last_text, topic, max_chars=self.plain_text_max_chars)
        raise ContentGenerationExhausted(f"no usable response for '{topic.main_topic}'")

    def generate_content(
        self,
        topic: TopicStructure,
        transcript: str,
        language: Optional[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> TopicContent:
        try:
            return self._generate(topic, transcript, language, cancel_event)
        except ContentGenerationExhausted as e:
            logger.error(f"{e}; using placeholder content")
        except Exception:
            logger.exception(f"content generation crashed for '{topic.main_topic}'; using placeholder content")
        return placeholder_content(topic)
