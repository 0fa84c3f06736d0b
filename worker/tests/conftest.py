from __future__ import annotations

import re
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Union

import pytest

from smartnotes.config import Settings

_TOPIC_RE = re.compile(r'the main topic "(.*?)" was identified')

Script = Union[str, Exception, Callable[[str], str], List[Any]]


def prompt_kind(prompt: str) -> str:
    if "step 1 of a multi-step process" in prompt:
        return "topics"
    if "This is step 2" in prompt:
        return "content"
    if "Structured processing failed" in prompt:
        return "simple"
    if "careful editor fixing spelling" in prompt:
        return "spelling"
    return "other"


def topic_of(prompt: str) -> str:
    m = _TOPIC_RE.search(prompt)
    return m.group(1) if m else ""


class FakeBackend:
    """Scripted backend keyed by prompt kind.

    A script is a string (always returned), an exception (always raised), a
    callable taking the prompt, or a list consumed one call at a time (the
    last item repeats).
    """

    name = "fake"
    configured = True

    def __init__(self, **scripts: Script) -> None:
        self.scripts: Dict[str, Script] = dict(scripts)
        self.calls: Dict[str, List[str]] = defaultdict(list)
        self._lock = threading.Lock()

    def count(self, kind: str) -> int:
        return len(self.calls[kind])

    def generate(self, model: str, prompt: str) -> str:
        kind = prompt_kind(prompt)
        with self._lock:
            self.calls[kind].append(prompt)
            script = self.scripts.get(kind, "")
            if isinstance(script, list):
                script = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(script, Exception):
            raise script
        if callable(script):
            return script(prompt)
        return script


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        tmp_dir=str(tmp_path),
        topic_retry_delay_s=0.0,
        fanout_task_timeout_s=5.0,
        shutdown_grace_s=1.0,
        spell_correction=False,
    )
