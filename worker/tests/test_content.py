import threading

from smartnotes.errors import BackendUnavailable
from smartnotes.models.notes import TopicStructure
from smartnotes.services.content import ContentGenerator

from conftest import FakeBackend

TOPIC = TopicStructure(main_topic="Spring Boot", subtopics=["DI", "Beans"])

GOOD = '```json\n{"title": "Spring Boot", "subtopics": [{"title": "DI", "content": "Inject it."}]}\n```'


def test_structured_response_is_returned():
    backend = FakeBackend(content=GOOD)
    content = ContentGenerator(backend, "m").generate_content(TOPIC, "transcript", "English")
    assert content.title == "Spring Boot"
    assert content.subtopics[0].content == "Inject it."
    assert backend.count("content") == 1


def test_retry_after_unmappable_response():
    backend = FakeBackend(content=["I cannot produce JSON today.", GOOD])
    content = ContentGenerator(backend, "m", max_attempts=2).generate_content(TOPIC, "t", "English")
    assert content.subtopics[0].title == "DI"
    assert backend.count("content") == 2


def test_last_text_is_salvaged_as_plain_text():
    backend = FakeBackend(content=["first prose", "second prose"])
    content = ContentGenerator(backend, "m", max_attempts=2).generate_content(TOPIC, "t", "English")
    assert [s.title for s in content.subtopics] == ["DI", "Beans"]
    assert all(s.content == "second prose" for s in content.subtopics)


def test_payload_without_subtopics_is_salvaged():
    backend = FakeBackend(content='{"title": "Spring Boot"}')
    content = ContentGenerator(backend, "m", max_attempts=2).generate_content(TOPIC, "t", "English")
    assert content.subtopics[0].description == "Content extracted from video transcript"


def test_no_text_at_all_gives_placeholder():
    backend = FakeBackend(content=["", BackendUnavailable("down")])
    content = ContentGenerator(backend, "m", max_attempts=2).generate_content(TOPIC, "t", "English")
    assert backend.count("content") == 2
    assert [s.content for s in content.subtopics] == ["Detailed content will be added here."] * 2


def test_cancelled_task_makes_no_calls():
    backend = FakeBackend(content=GOOD)
    cancel = threading.Event()
    cancel.set()
    content = ContentGenerator(backend, "m").generate_content(TOPIC, "t", "English", cancel_event=cancel)
    assert backend.count("content") == 0
    assert content.subtopics[0].description == "Content generation in progress"


def test_prompt_lists_expected_subtopics():
    backend = FakeBackend(content=GOOD)
    ContentGenerator(backend, "m").generate_content(TOPIC, "the transcript", "French")
    prompt = backend.calls["content"][0]
    assert '"Spring Boot"' in prompt
    assert '["DI", "Beans"]' in prompt
    assert "Write in French." in prompt
