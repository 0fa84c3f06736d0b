"""Map repaired model JSON onto the notes data model.

Models drift between field names from one call to the next ("sections"
instead of "subtopics", "imagePositions" instead of "images"). Every
logical field therefore has an ordered tuple of accepted keys, tried in
priority order, and every read falls back to a typed default instead of
failing. Both entry points are pure functions of their inputs.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models.notes import (
    ImagePlaceholder,
    SubtopicContent,
    TableData,
    TopicContent,
    TopicStructure,
)

logger = logging.getLogger("smartnotes.mapper")

SUBTOPICS_KEYS = ("subtopics", "subTopics", "topics", "sections", "content", "items")
# Keys that mark a list item as a whole topic rather than a subtopic.
NESTED_SUBTOPICS_KEYS = ("subtopics", "subTopics", "sections")
TITLE_KEYS = ("title", "mainTopic", "topic", "name", "heading")

SUBTOPIC_TITLE_KEYS = ("title", "subtopic", "name", "heading", "topic")
SUBTOPIC_DESCRIPTION_KEYS = ("description", "summary", "overview", "desc")
SUBTOPIC_CONTENT_KEYS = ("content", "body", "text", "details", "explanation")
IMAGES_KEYS = ("images", "imagePositions", "image_positions", "imageSuggestions", "diagrams")
TABLES_KEYS = ("tables", "tablePositions", "table_positions", "tableSuggestions")

IMAGE_DESCRIPTION_KEYS = ("description", "desc", "caption", "prompt")
TABLE_TITLE_KEYS = ("title", "name", "caption")
TABLE_HEADERS_KEYS = ("headers", "columns", "header")
TABLE_ROWS_KEYS = ("rows", "data", "values")

TOPIC_LIST_KEYS = ("topics", "mainTopics", "items", "data")
MAIN_TOPIC_KEYS = ("mainTopic", "main_topic", "topic", "title", "name", "heading")
TOPIC_SUBTOPICS_KEYS = ("subtopics", "subTopics", "sub_topics", "children", "items")

_INLINE_IMAGE_RE = re.compile(r"\[IMAGE:\s*(.*?)\]", re.IGNORECASE | re.DOTALL)
_INLINE_TABLE_RE = re.compile(r"\[TABLE:\s*(.*?)\]", re.IGNORECASE | re.DOTALL)


def _loads(candidate: str) -> Optional[Any]:
    try:
        return json.loads(candidate)
    except (TypeError, ValueError):
        return None


def first_text(node: Dict[str, Any], keys: Sequence[str], default: str = "") -> str:
    """First non-blank scalar under ``keys``, as a stripped string."""
    for key in keys:
        value = node.get(key)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            text = str(value).strip()
            if text:
                return text
    return default


def first_list(node: Dict[str, Any], keys: Sequence[str]) -> List[Any]:
    """First non-empty list under ``keys``; an empty list if none."""
    for key in keys:
        value = node.get(key)
        if isinstance(value, list) and value:
            return value
    return []


def first_prose(node: Dict[str, Any], keys: Sequence[str]) -> str:
    """Like ``first_text``, but a list of paragraphs is joined."""
    for key in keys:
        value = node.get(key)
        if isinstance(value, list):
            paragraphs = [str(p).strip() for p in value if isinstance(p, str) and p.strip()]
            if paragraphs:
                return "\n\n".join(paragraphs)
        elif isinstance(value, (str, int, float)) and not isinstance(value, bool) and str(value).strip():
            return str(value).strip()
    return ""


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _position(value: Any, default: int) -> int:
    try:
        pos = int(float(value))
    except (TypeError, ValueError):
        return default
    return max(pos, 0)


def _map_image(node: Any, index: int) -> Optional[ImagePlaceholder]:
    if isinstance(node, str):
        return ImagePlaceholder(position=index, description=node.strip()) if node.strip() else None
    if not isinstance(node, dict):
        return None
    # imageUrl/placeholder from the model are ignored: nothing is rendered here.
    return ImagePlaceholder(
        position=_position(node.get("position"), index),
        description=first_text(node, IMAGE_DESCRIPTION_KEYS),
    )


def _map_row(row: Any) -> List[str]:
    if isinstance(row, list):
        return [_cell(c) for c in row]
    if isinstance(row, dict):
        return [_cell(c) for c in row.values()]
    if isinstance(row, str):
        return [c.strip() for c in row.split(",")]
    return [_cell(row)]


def _map_table(node: Any, index: int) -> Optional[TableData]:
    if not isinstance(node, dict):
        return None
    headers = first_list(node, TABLE_HEADERS_KEYS)
    if len(headers) == 0 and isinstance(node.get("headers"), str):
        headers = node["headers"].split(",")
    return TableData(
        position=_position(node.get("position"), index),
        title=first_text(node, TABLE_TITLE_KEYS),
        headers=[_cell(h).strip() for h in headers],
        rows=[_map_row(r) for r in first_list(node, TABLE_ROWS_KEYS)],
    )


def _collect(items: Iterable[Any], mapper) -> list:
    out = []
    for index, item in enumerate(items, start=1):
        mapped = mapper(item, index)
        if mapped is not None:
            out.append(mapped)
    return out


def inline_images(content: str) -> List[ImagePlaceholder]:
    """Lift ``[IMAGE: description]`` markers out of prose."""
    return [
        ImagePlaceholder(position=index, description=match.strip())
        for index, match in enumerate(_INLINE_IMAGE_RE.findall(content or ""), start=1)
        if match.strip()
    ]


def inline_tables(content: str) -> List[TableData]:
    """Lift ``[TABLE: title | h1,h2 | r1c1,r1c2 | ...]`` markers out of prose."""
    tables: List[TableData] = []
    for index, match in enumerate(_INLINE_TABLE_RE.findall(content or ""), start=1):
        parts = [p.strip() for p in match.split("|")]
        if not parts or not parts[0]:
            continue
        headers = [h.strip() for h in parts[1].split(",")] if len(parts) > 1 else []
        rows = [[c.strip() for c in p.split(",")] for p in parts[2:] if p]
        tables.append(TableData(position=index, title=parts[0], headers=headers, rows=rows))
    return tables


def _map_subtopic(node: Any, index: int, expected: Sequence[str]) -> Optional[SubtopicContent]:
    default_title = expected[index - 1] if index - 1 < len(expected) else f"Subtopic {index}"
    if isinstance(node, str):
        title = node.strip()
        return SubtopicContent(title=title or default_title)
    if not isinstance(node, dict):
        return None
    content = first_prose(node, SUBTOPIC_CONTENT_KEYS)
    images = _collect(first_list(node, IMAGES_KEYS), _map_image)
    tables = _collect(first_list(node, TABLES_KEYS), _map_table)
    return SubtopicContent(
        title=first_text(node, SUBTOPIC_TITLE_KEYS, default_title),
        description=first_text(node, SUBTOPIC_DESCRIPTION_KEYS),
        content=content,
        images=images or inline_images(content),
        tables=tables or inline_tables(content),
    )


def _is_topic_node(node: Any) -> bool:
    return isinstance(node, dict) and bool(first_text(node, TITLE_KEYS)) and bool(first_list(node, NESTED_SUBTOPICS_KEYS))


def _subtopic_nodes(root: Any) -> List[Any]:
    if isinstance(root, list):
        # An array of topic objects: merge their subtopic lists.
        if root and all(_is_topic_node(item) for item in root):
            return [node for item in root for node in first_list(item, NESTED_SUBTOPICS_KEYS)]
        return root
    if not isinstance(root, dict):
        return []
    direct = root.get("subtopics")
    if isinstance(direct, list) and direct:
        return direct
    return first_list(root, SUBTOPICS_KEYS)


def map_topic_content(candidate: str, source_topic: TopicStructure) -> Optional[TopicContent]:
    """Map a repaired payload onto ``TopicContent``.

    Returns ``None`` when the candidate does not parse at all. A parsed
    payload without any recognisable subtopics yields a ``TopicContent``
    with an empty ``subtopics`` list so the caller can decide to retry.
    """
    root = _loads(candidate)
    if root is None:
        return None

    title = source_topic.main_topic
    if isinstance(root, dict):
        title = first_text(root, TITLE_KEYS, source_topic.main_topic)
    elif isinstance(root, list) and root and all(_is_topic_node(item) for item in root):
        title = first_text(root[0], TITLE_KEYS, source_topic.main_topic)

    expected = list(source_topic.subtopics)
    subtopics: List[SubtopicContent] = []
    for index, node in enumerate(_subtopic_nodes(root), start=1):
        mapped = _map_subtopic(node, index, expected)
        if mapped is not None:
            subtopics.append(mapped)

    if not subtopics:
        logger.debug("no subtopics found in payload", extra={"topic": source_topic.main_topic})
    return TopicContent(title=title, subtopics=subtopics)


def _topic_entry(node: Any) -> Optional[TopicStructure]:
    if isinstance(node, str):
        return TopicStructure(main_topic=node.strip()) if node.strip() else None
    if not isinstance(node, dict):
        return None
    main_topic = first_text(node, MAIN_TOPIC_KEYS)
    if not main_topic:
        return None
    subtopics: List[str] = []
    for item in first_list(node, TOPIC_SUBTOPICS_KEYS):
        if isinstance(item, dict):
            text = first_text(item, SUBTOPIC_TITLE_KEYS)
        else:
            text = _cell(item).strip()
        if text:
            subtopics.append(text)
    return TopicStructure(main_topic=main_topic, subtopics=subtopics)


def map_topic_list(candidate: str) -> List[TopicStructure]:
    root = _loads(candidate)
    if isinstance(root, dict):
        wrapped = first_list(root, TOPIC_LIST_KEYS)
        if wrapped and (any(isinstance(item, dict) for item in wrapped) or not first_text(root, MAIN_TOPIC_KEYS)):
            root = wrapped
        else:
            # A single topic object rather than a list of them.
            root = [root]
    if not isinstance(root, list):
        return []
    topics: List[TopicStructure] = []
    for node in root:
        entry = _topic_entry(node)
        if entry is not None:
            topics.append(entry)
    return topics
