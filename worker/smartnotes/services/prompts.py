"""Prompt templates for each backend call the pipeline makes."""

from __future__ import annotations

import json
from typing import Optional, Sequence

DEFAULT_LANGUAGE = "English"


def _lang(language: Optional[str]) -> str:
    return language.strip() if language and language.strip() else DEFAULT_LANGUAGE


TOPIC_EXTRACTION_TEMPLATE = """You are helping to create structured educational notes from a video transcript.
This is step 1 of a multi-step process: identify which topics the video covers.

Task:
Analyze the transcript below and extract ALL main topics and their subtopics.
- Main topics are broad categories (e.g. "Spring Framework", "Database Design").
- Subtopics are specific concepts under a main topic (e.g. "Dependency Injection", "Bean Lifecycle").

Rules:
1. Return ONLY valid JSON: no explanations, no markdown, no extra text.
2. Use exactly this format:
[
  {{"mainTopic": "Main Topic Name", "subtopics": ["Subtopic 1", "Subtopic 2"]}}
]
3. Capture every topic discussed, in the order it appears.
4. Keep topic names concise but clear.
5. If only one main topic exists, still return an array with one element.

Language: {language}

Transcript:
{transcript}

Return only the JSON array:
"""

CONTENT_GENERATION_TEMPLATE = """You are writing detailed educational notes from a video transcript.
This is step 2. In step 1 the main topic "{main_topic}" was identified with these subtopics: {subtopics}

Task:
Write comprehensive content for ONLY this topic and its subtopics, based on the transcript.

Rules:
1. Return ONLY valid JSON: no explanations, no markdown, no extra text.
2. For each subtopic give a 1-2 sentence description, detailed content with examples,
   where an image would help understanding, and where a table would organize information.
3. Inside content, mark a helpful image as [IMAGE: what it should show] and a helpful table as
   [TABLE: title | header1,header2 | row1col1,row1col2 | row2col1,row2col2].
4. Use exactly this format:
{{
  "title": "{main_topic}",
  "subtopics": [
    {{
      "title": "Subtopic Name",
      "description": "Brief overview",
      "content": "Detailed explanation...",
      "imagePositions": [{{"position": 1, "description": "What the image should illustrate"}}],
      "tablePositions": [
        {{"position": 1, "title": "Table Title", "headers": ["A", "B"], "rows": [["a1", "b1"], ["a2", "b2"]]}}
      ]
    }}
  ]
}}

Write in {language}. Be thorough; there is no length limit.

Full transcript for context:
{transcript}

Return only the JSON object:
"""

SIMPLE_NOTES_TEMPLATE = """You are creating educational notes from a video transcript.
Structured processing failed, so write a plain text summary instead (not JSON).

Guidelines:
- Use ## headings for main topics.
- Use bullet points for key information.
- Include code examples if relevant.
- Highlight important concepts and make the notes easy to study from.
- Write in {language}.

Transcript:
{transcript}

Notes:
"""

SPELL_CORRECTION_TEMPLATE = """You are a careful editor fixing spelling mistakes while preserving technical terms, code tokens, acronyms, names and context.
Instructions:
- Correct obvious spelling mistakes, repeated letters, missing letters and simple recognition errors.
- Keep technical words, code, commands, package and class names, acronyms and URLs exactly as they are unless clearly misspelled.
- Keep the original meaning and punctuation where possible.
- Output only the corrected transcript as plain text: no explanations, no JSON, no commentary.
Language: {language}

Transcript:
{transcript}
"""


def topic_extraction_prompt(transcript: str, language: Optional[str]) -> str:
    return TOPIC_EXTRACTION_TEMPLATE.format(language=_lang(language), transcript=transcript)


def content_generation_prompt(main_topic: str, subtopics: Sequence[str], transcript: str, language: Optional[str]) -> str:
    return CONTENT_GENERATION_TEMPLATE.format(
        main_topic=main_topic,
        subtopics=json.dumps(list(subtopics), ensure_ascii=False),
        language=_lang(language),
        transcript=transcript,
    )


def simple_notes_prompt(transcript: str, language: Optional[str]) -> str:
    return SIMPLE_NOTES_TEMPLATE.format(language=_lang(language), transcript=transcript)


def spell_correction_prompt(transcript: str, language: Optional[str]) -> str:
    return SPELL_CORRECTION_TEMPLATE.format(language=_lang(language), transcript=transcript)
