from __future__ import annotations

import logging
from typing import Optional

from .backend import TextGenerationBackend
from .prompts import spell_correction_prompt

logger = logging.getLogger("smartnotes.spelling")


class SpellCorrector:
    """Context-aware transcript spell correction through the backend.

    ``correct`` never raises: any failure or empty answer returns the text it
    was given.
    """

    def __init__(self, backend: TextGenerationBackend, model: str, enabled: bool = True) -> None:
        self.backend = backend
        self.model = model
        self.enabled = enabled

    def correct(self, text: str, language: Optional[str]) -> str:
        if not self.enabled or not text or not text.strip():
            return text
        try:
            logger.info("running spell correction", extra={"chars": len(text)})
            response = self.backend.generate(self.model, spell_correction_prompt(text, language))
        except Exception as e:
            logger.warning(f"spell correction failed, keeping original transcript: {e}")
            return text
        if not response or not response.strip():
            logger.warning("spell correction returned empty, keeping original transcript")
            return text
        return response.strip()
