from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from ..errors import BackendUnavailable, MalformedOutput, NoTopicsExtracted
from ..models.notes import TopicStructure
from .backend import TextGenerationBackend
from .mapper import map_topic_list
from .prompts import topic_extraction_prompt
from .repair import repair_json

logger = logging.getLogger("smartnotes.topics")


class TopicExtractor:
    """Ask the backend for an ordered list of (main topic, subtopics).

    Every kind of failure (empty text, backend error, unparsable or empty
    list) is retried after a fixed ``retry_delay`` seconds. The delay is a
    throttle for an overloaded backend, so it does not grow between
    attempts.
    """

    def __init__(
        self,
        backend: TextGenerationBackend,
        model: str,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.backend = backend
        self.model = model
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self._sleep = sleep

    def _attempt(self, prompt: str) -> List[TopicStructure]:
        response = self.backend.generate(self.model, prompt)
        if not response or not response.strip():
            raise BackendUnavailable("empty response")
        candidate = repair_json(response)
        logger.debug("topic extraction candidate", extra={"candidate": candidate[:1000]})
        topics = map_topic_list(candidate)
        if not topics:
            raise MalformedOutput("no topics in response")
        return topics

    def extract_topics(self, transcript: str, language: Optional[str]) -> List[TopicStructure]:
        prompt = topic_extraction_prompt(transcript, language)
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1 and self.retry_delay > 0:
                self._sleep(self.retry_delay)
            logger.info("extracting topics", extra={"attempt": attempt, "max_attempts": self.max_attempts})
            try:
                topics = self._attempt(prompt)
            except Exception as e:
                last_error = e
                logger.warning(f"topic extraction attempt {attempt}/{self.max_attempts} failed: {e}")
                continue
            logger.info(
                f"extracted {len(topics)} topics",
                extra={"topics": [t.main_topic for t in topics]},
            )
            return topics
        raise NoTopicsExtracted(f"no topics after {self.max_attempts} attempts: {last_error}")
