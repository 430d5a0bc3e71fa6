"""
LLM-backed lesson extraction.

An alternative to the keyword parser for messy indexes and photographed
tables of contents. The model is asked for ``{"lessons": [...]}``; whatever
comes back is normalised into the same ParsedLesson shape the parser emits,
reusing the parser's type inference for anything the model leaves out.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from app.core.config import get_settings
from app.core.deps import get_llm_client
from app.models.curriculum import LessonType, ParsedLesson
from app.prompts.lesson_extraction import (
    LESSON_EXTRACTION_IMAGE_PROMPT,
    LESSON_EXTRACTION_SYSTEM_PROMPT,
    LESSON_EXTRACTION_TEXT_PROMPT,
)
from app.services.lesson_parser import LessonNumberer, infer_lesson_type

logger = logging.getLogger("pebbletrack.lesson_extractor")

DEFAULT_MODEL = "gpt-4o"
MAX_TOKENS = 4096

# Model answers outside the closed LessonType set
_TYPE_ALIASES: dict[str, LessonType] = {
    "exam": LessonType.TEST,
    "assessment": LessonType.QUIZ,
    "investigation": LessonType.REVIEW,
}


class LessonExtractionError(Exception):
    """The LLM call failed or returned something that is not a lesson list."""


def strip_code_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def _as_positive_int(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number > 0 else None


def _coerce_type(raw: Any, title: str) -> tuple[LessonType, int]:
    inferred_type, inferred_minutes = infer_lesson_type(title)
    if not isinstance(raw, str):
        return inferred_type, inferred_minutes
    key = raw.strip().lower()
    if key in _TYPE_ALIASES:
        lesson_type = _TYPE_ALIASES[key]
    else:
        try:
            lesson_type = LessonType(key)
        except ValueError:
            return inferred_type, inferred_minutes
    if lesson_type == inferred_type:
        return lesson_type, inferred_minutes
    return lesson_type, infer_lesson_type(lesson_type.value)[1]


def normalize_lessons(items: list[Any]) -> list[ParsedLesson]:
    """Turn loosely-shaped model output into ParsedLessons.

    Items without a usable title are dropped. Missing numbers continue the
    running count; missing or non-positive durations take the parser default.
    """
    numberer = LessonNumberer()
    lessons: list[ParsedLesson] = []

    for item in items:
        if isinstance(item, str):
            item = {"title": item}
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip()
        if not title:
            continue

        lesson_type, default_minutes = _coerce_type(item.get("type"), title)
        number = _as_positive_int(item.get("lessonNumber", item.get("lesson_number")))
        minutes = _as_positive_int(item.get("estimatedMinutes", item.get("estimated_minutes")))
        description = item.get("description")

        lessons.append(ParsedLesson(
            lesson_number=numberer.next(number),
            title=title,
            type=lesson_type,
            estimated_minutes=minutes or default_minutes,
            description=(str(description).strip() or None) if description else None,
        ))

    return lessons


def parse_lessons_response(content: str) -> list[ParsedLesson]:
    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        raise LessonExtractionError(f"Failed to parse AI response: {str(e)}")

    if isinstance(data, dict):
        items = data.get("lessons", [])
    elif isinstance(data, list):
        items = data
    else:
        items = None
    if not isinstance(items, list):
        raise LessonExtractionError("AI response did not contain a lessons array")
    return normalize_lessons(items)


class LessonExtractor:
    def __init__(self, client=None, model: str = DEFAULT_MODEL):
        settings = get_settings()
        self.client = client or get_llm_client(settings)
        self.model = model
        self.max_chars = settings.max_parse_chars

    def _complete(self, user_content) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": LESSON_EXTRACTION_SYSTEM_PROMPT},
                    {"role": "user", "content": user_content},
                ],
                temperature=0.2,
                max_tokens=MAX_TOKENS,
            )
        except Exception as e:
            logger.error("[lesson_extractor] LLM call failed: %s", e, exc_info=True)
            raise LessonExtractionError(f"AI extraction failed: {str(e)}")
        return response.choices[0].message.content or ""

    async def extract_from_text(self, text: str, curriculum_name: str = "curriculum") -> list[ParsedLesson]:
        prompt = LESSON_EXTRACTION_TEXT_PROMPT.format(
            curriculum_name=curriculum_name,
            content=text[: self.max_chars],
        )
        lessons = parse_lessons_response(self._complete(prompt))
        logger.info("[lesson_extractor] text extraction returned %d lessons", len(lessons))
        return lessons

    async def extract_from_image(
        self,
        base64_image: str,
        curriculum_name: str = "curriculum",
        mime_type: str = "image/jpeg",
    ) -> list[ParsedLesson]:
        url = base64_image if base64_image.startswith("data:") else f"data:{mime_type};base64,{base64_image}"
        content = [
            {"type": "text", "text": LESSON_EXTRACTION_IMAGE_PROMPT.format(curriculum_name=curriculum_name)},
            {"type": "image_url", "image_url": {"url": url}},
        ]
        lessons = parse_lessons_response(self._complete(content))
        logger.info("[lesson_extractor] image extraction returned %d lessons", len(lessons))
        return lessons


def get_lesson_extractor() -> LessonExtractor:
    return LessonExtractor()
