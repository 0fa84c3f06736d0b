from smartnotes.models.notes import TopicStructure
from smartnotes.services.fallbacks import from_plain_text, placeholder_content


def test_plain_text_is_repeated_and_truncated_per_expected_subtopic():
    topic = TopicStructure(main_topic="Java", subtopics=["Classes", "Interfaces"])
    raw = "x" * 600
    content = from_plain_text(raw, topic)
    assert content.title == "Java"
    assert [s.title for s in content.subtopics] == ["Classes", "Interfaces"]
    for sub in content.subtopics:
        assert sub.description == "Content extracted from video transcript"
        assert sub.content == "x" * 500 + "..."


def test_short_plain_text_is_not_marked_truncated():
    topic = TopicStructure(main_topic="Java", subtopics=["Classes"])
    content = from_plain_text("```json\nShort answer.\n```", topic)
    assert content.subtopics[0].content == "Short answer."


def test_plain_text_without_expected_subtopics_keeps_full_text():
    topic = TopicStructure(main_topic="Java")
    raw = "y" * 800
    content = from_plain_text(raw, topic)
    assert len(content.subtopics) == 1
    assert content.subtopics[0].title == "Summary"
    assert content.subtopics[0].description == "Generated content from video transcript"
    assert content.subtopics[0].content == raw


def test_placeholder_uses_expected_subtopics():
    content = placeholder_content(TopicStructure(main_topic="Java", subtopics=["Classes", "Interfaces"]))
    assert content.title == "Java"
    assert [s.title for s in content.subtopics] == ["Classes", "Interfaces"]
    assert all(s.content == "Detailed content will be added here." for s in content.subtopics)


def test_placeholder_without_subtopics_has_summary():
    content = placeholder_content(TopicStructure(main_topic="Java"))
    assert len(content.subtopics) == 1
    sub = content.subtopics[0]
    assert (sub.title, sub.description, sub.content) == (
        "Summary",
        "Content not available",
        "Unable to generate content at this time.",
    )
