"""Best-effort repair of JSON embedded in model output.

Models wrap JSON in prose and code fences, leave trailing commas, glue
objects together without separators, add comments and stop mid-payload.
``repair_json`` isolates the payload and fixes the common cases. It is a
pure string function: it never raises, and callers still have to parse the
result and treat a parse failure as malformed output.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_GLUED_OBJECTS_RE = re.compile(r"}\s*{")
_GLUED_ARRAYS_RE = re.compile(r"]\s*\[")
# A string literal; the closing quote may be missing at the end of the text.
_STRING_RE = re.compile(r'"(?:\\.|[^"\\])*"?', re.DOTALL)
_DANGLING_KEY_RE = re.compile(r'([,{])\s*"(?:\\.|[^"\\])*"\s*:?\s*$')

_CLOSERS = {"{": "}", "[": "]"}


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def _fix_structure(text: str) -> str:
    text = _TRAILING_COMMA_RE.sub(r"\1", text)
    text = _GLUED_OBJECTS_RE.sub("},{", text)
    return _GLUED_ARRAYS_RE.sub("],[", text)


def _outside_strings(text: str, fix) -> str:
    """Apply ``fix`` to the text between string literals only."""
    out: List[str] = []
    pos = 0
    for match in _STRING_RE.finditer(text):
        out.append(fix(text[pos : match.start()]))
        out.append(match.group(0))
        pos = match.end()
    out.append(fix(text[pos:]))
    return "".join(out)


def _closes(text: str) -> bool:
    """Whether the container opened at ``text[0]`` is closed again."""
    depth = 0
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return True
    return False


def _container_span(text: str) -> Optional[Tuple[int, int]]:
    obj_start = text.find("{")
    arr_start = text.find("[")
    if obj_start == -1 and arr_start == -1:
        return None
    # The object wins unless the array opens strictly before it.
    if obj_start != -1 and (arr_start == -1 or obj_start < arr_start):
        start, closer = obj_start, "}"
    else:
        start, closer = arr_start, "]"
    end = text.rfind(closer)
    if end <= start or not _closes(text[start : end + 1]):
        # Truncated: keep everything up to the end and close it later.
        end = len(text) - 1
    return start, end


def _strip_comments(text: str) -> str:
    """Drop // and /* */ comments that sit outside string literals."""
    out: List[str] = []
    i = 0
    n = len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue
        if text.startswith("//", i):
            nl = text.find("\n", i)
            i = n if nl == -1 else nl
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _scan(text: str) -> Tuple[List[str], bool, bool]:
    """Return (open bracket stack, ends inside a string, has top-level comma)."""
    stack: List[str] = []
    in_string = False
    escaped = False
    top_level_comma = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]":
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
        elif ch == "," and not stack:
            top_level_comma = True
    return stack, in_string, top_level_comma


def _close_truncated(text: str) -> str:
    stack, in_string, _ = _scan(text)
    if not stack and not in_string:
        return text
    if in_string:
        text += '"'
    text = text.rstrip()
    if stack and stack[-1] == "{":
        # A key with no value yet.
        text = _DANGLING_KEY_RE.sub(r"\1", text)
    text = re.sub(r"[,:]\s*$", "", text)
    return text + "".join(_CLOSERS[opener] for opener in reversed(stack))


def _wrap_concatenated(text: str) -> str:
    _, _, top_level_comma = _scan(text)
    if top_level_comma:
        return "[" + text + "]"
    return text


def repair_json(raw_text: Optional[str]) -> str:
    cleaned = strip_fences(raw_text or "")
    span = _container_span(cleaned)
    if span is None:
        return cleaned

    start, end = span
    candidate = cleaned[start : end + 1]
    candidate = _strip_comments(candidate)
    candidate = _outside_strings(candidate, _fix_structure)
    candidate = _close_truncated(candidate)
    candidate = _outside_strings(candidate, _fix_structure)
    candidate = _wrap_concatenated(candidate)
    return candidate.strip()
