from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, TimeoutError as FutureTimeout, wait
from typing import List, Optional, Sequence, Set

from ..models.notes import TopicContent, TopicStructure
from .content import ContentGenerator
from .fallbacks import placeholder_content

logger = logging.getLogger("smartnotes.fanout")


class FanOutCoordinator:
    """Runs one content task per topic on a fixed-size pool.

    The pool is owned by this object: build it once, share it between
    requests, and call ``shutdown`` on teardown. Results are placed by topic
    index, so their order never depends on completion order.
    """

    def __init__(self, generator: ContentGenerator, max_workers: int = 5, task_timeout: float = 300.0) -> None:
        self.generator = generator
        self.max_workers = max_workers
        self.task_timeout = task_timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="topic-content")
        self._lock = threading.Lock()
        self._inflight: Set[Future] = set()
        self._cancel_events: Set[threading.Event] = set()
        self._closed = False

    def _submit(self, topic: TopicStructure, transcript: str, language: Optional[str], cancel_event: threading.Event) -> Future:
        with self._lock:
            if self._closed:
                raise RuntimeError("fan-out coordinator is shut down")
            future = self._executor.submit(self.generator.generate_content, topic, transcript, language, cancel_event)
            self._inflight.add(future)
            self._cancel_events.add(cancel_event)

        def _done(f: Future) -> None:
            with self._lock:
                self._inflight.discard(f)
                self._cancel_events.discard(cancel_event)

        future.add_done_callback(_done)
        return future

    def generate_all(self, topics: Sequence[TopicStructure], transcript: str, language: Optional[str]) -> List[TopicContent]:
        total = len(topics)
        slots: List[Optional[TopicContent]] = [None] * total
        pending = []
        for index, topic in enumerate(topics):
            cancel_event = threading.Event()
            pending.append((index, self._submit(topic, transcript, language, cancel_event), cancel_event))
        logger.info(f"dispatched {total} topic tasks", extra={"workers": self.max_workers})

        for index, future, cancel_event in pending:
            topic = topics[index]
            try:
                slots[index] = future.result(timeout=self.task_timeout)
            except FutureTimeout:
                logger.error(f"topic {index + 1}/{total} '{topic.main_topic}' timed out after {self.task_timeout}s")
                future.cancel()
                cancel_event.set()
            except (CancelledError, Exception) as e:
                logger.error(f"topic {index + 1}/{total} '{topic.main_topic}' failed: {e}")
            if slots[index] is None:
                slots[index] = placeholder_content(topic)
        return [slot for slot in slots if slot is not None]

    def shutdown(self, grace_seconds: float = 60.0) -> None:
        """Let in-flight tasks finish for up to ``grace_seconds``, then force."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            inflight = set(self._inflight)
        self._executor.shutdown(wait=False)
        if inflight:
            logger.info(f"waiting up to {grace_seconds}s for {len(inflight)} topic tasks")
            _, not_done = wait(inflight, timeout=grace_seconds)
            if not_done:
                logger.warning(f"forcing shutdown with {len(not_done)} topic tasks still running")
        with self._lock:
            for event in self._cancel_events:
                event.set()
        self._executor.shutdown(wait=False, cancel_futures=True)
