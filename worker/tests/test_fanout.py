import json
import threading
import time

import pytest

from smartnotes.models.notes import TopicContent, TopicStructure
from smartnotes.services.content import ContentGenerator
from smartnotes.services.fanout import FanOutCoordinator

from conftest import FakeBackend, topic_of


def _content_for(prompt):
    name = topic_of(prompt)
    return json.dumps({"title": name, "subtopics": [{"title": f"{name} detail", "content": name}]})


def test_results_follow_input_order_not_completion_order():
    def content(prompt):
        name = topic_of(prompt)
        # Earlier topics finish later.
        time.sleep({"A": 0.3, "B": 0.15, "C": 0.0}[name])
        return _content_for(prompt)

    coordinator = FanOutCoordinator(ContentGenerator(FakeBackend(content=content), "m"), max_workers=3, task_timeout=5)
    try:
        topics = [TopicStructure(main_topic=n) for n in ("A", "B", "C")]
        results = coordinator.generate_all(topics, "t", "English")
    finally:
        coordinator.shutdown(1.0)
    assert [r.title for r in results] == ["A", "B", "C"]


def test_timed_out_topic_gets_placeholder_in_its_slot():
    release = threading.Event()

    def content(prompt):
        if topic_of(prompt) == "Slow":
            release.wait(10)
        return _content_for(prompt)

    coordinator = FanOutCoordinator(ContentGenerator(FakeBackend(content=content), "m"), max_workers=3, task_timeout=0.3)
    topics = [
        TopicStructure(main_topic="A"),
        TopicStructure(main_topic="Slow", subtopics=["s1"]),
        TopicStructure(main_topic="C"),
    ]
    try:
        results = coordinator.generate_all(topics, "t", "English")
    finally:
        release.set()
        coordinator.shutdown(1.0)

    assert len(results) == 3
    assert results[0].subtopics[0].title == "A detail"
    assert results[1].title == "Slow"
    assert results[1].subtopics[0].title == "s1"
    assert results[1].subtopics[0].description == "Content generation in progress"
    assert results[2].subtopics[0].title == "C detail"


class _Exploding:
    def generate_content(self, topic, transcript, language, cancel_event=None):
        if topic.main_topic == "Bad":
            raise RuntimeError("boom")
        return TopicContent(title=topic.main_topic)


def test_failed_task_gets_placeholder():
    coordinator = FanOutCoordinator(_Exploding(), max_workers=2, task_timeout=5)
    try:
        results = coordinator.generate_all([TopicStructure(main_topic="Bad"), TopicStructure(main_topic="Good")], "t", None)
    finally:
        coordinator.shutdown(1.0)
    assert [r.title for r in results] == ["Bad", "Good"]
    assert results[0].subtopics[0].title == "Summary"


def test_shutdown_signals_running_tasks():
    started = threading.Event()

    class Waiting:
        def generate_content(self, topic, transcript, language, cancel_event=None):
            started.set()
            cancel_event.wait(5)
            return TopicContent(title=f"{topic.main_topic} cancelled" if cancel_event.is_set() else topic.main_topic)

    coordinator = FanOutCoordinator(Waiting(), max_workers=1, task_timeout=5)
    results = []
    worker = threading.Thread(target=lambda: results.extend(coordinator.generate_all([TopicStructure(main_topic="A")], "t", None)))
    worker.start()
    assert started.wait(2)
    coordinator.shutdown(grace_seconds=0.1)
    worker.join(2)
    assert [r.title for r in results] == ["A cancelled"]


def test_closed_coordinator_rejects_work():
    coordinator = FanOutCoordinator(_Exploding(), max_workers=1)
    coordinator.shutdown(0)
    with pytest.raises(RuntimeError):
        coordinator.generate_all([TopicStructure(main_topic="A")], "t", None)
