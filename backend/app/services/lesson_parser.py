"""
Lesson index parser — turns pasted table-of-contents text into lessons.

Single pass over the input, three steps per line:

  STEP A — Classify the line
    Blank lines, headers ("table of contents", anything mentioning
    "chapter") and fragments under 3 characters are dropped. A leading
    "Lesson 12:", "12.", "12 -" or "12 " prefix yields an explicit number
    and the rest of the line becomes the title.

  STEP B — Infer the lesson type
    Ordered keyword cascade on the lowercased title; the first matching
    group wins, so "Quiz Review" is a quiz.

  STEP C — Number the lesson
    A running counter starts at 1. An explicit number resets the counter;
    every emitted lesson advances it by one.

Every function here is total: nonsense input produces plain "lesson"
entries, never an exception.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from app.models.curriculum import LessonType, ParsedLesson, ParseResult
from app.services.import_advisor import generate_import_suggestions

logger = logging.getLogger("pebbletrack.lesson_parser")

# ---------------------------------------------------------------------------
# STEP A — line classification
# ---------------------------------------------------------------------------

MIN_LINE_LENGTH = 3

_NOISE_MARKERS: tuple[str, ...] = ("table of contents", "chapter")

_NUMBERED_LINE = re.compile(r"^(?:Lesson\s*)?(\d+)[:.\-\s]*(.+)", re.IGNORECASE)


@dataclass(frozen=True)
class ClassifiedLine:
    title: str
    number: Optional[int] = None


def is_noise(line: str) -> bool:
    """True for header lines and fragments too short to be a lesson."""
    lowered = line.lower()
    if any(marker in lowered for marker in _NOISE_MARKERS):
        return True
    return len(line) < MIN_LINE_LENGTH


def classify_line(line: str) -> Optional[ClassifiedLine]:
    """Classify one raw line. Returns None when the line should be skipped."""
    clean = line.strip()
    if not clean or is_noise(clean):
        return None

    match = _NUMBERED_LINE.match(clean)
    if match:
        title = match.group(2).strip()
        if title:
            try:
                number = int(match.group(1))
            except ValueError:
                # digit run past the int conversion limit
                return ClassifiedLine(title=clean)
            return ClassifiedLine(title=title, number=number)
    return ClassifiedLine(title=clean)


def split_lines(content: str) -> list[str]:
    """Non-empty, trimmed lines of ``content`` in source order."""
    return [line.strip() for line in content.split("\n") if line.strip()]


# ---------------------------------------------------------------------------
# STEP B — type inference
# ---------------------------------------------------------------------------

# Precedence matters: earlier groups win when a title matches several.
_TYPE_KEYWORDS: tuple[tuple[LessonType, tuple[str, ...]], ...] = (
    (LessonType.QUIZ, ("quiz", "assessment")),
    (LessonType.TEST, ("test", "exam", "final")),
    (LessonType.REVIEW, ("review", "practice")),
)

_BASE_MINUTES: dict[LessonType, int] = {
    LessonType.QUIZ: 20,
    LessonType.TEST: 45,
    LessonType.REVIEW: 30,
    LessonType.LESSON: 30,
}

# "intro" also covers "introduction"
_SHORT_SESSION_KEYWORDS = ("intro", "overview")
_LONG_SESSION_KEYWORDS = ("project", "lab")
SHORT_SESSION_MINUTES = 25
LONG_SESSION_MINUTES = 60


def infer_type(title: str) -> LessonType:
    lowered = title.lower()
    for lesson_type, keywords in _TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return lesson_type
    return LessonType.LESSON


def estimate_minutes(title: str, lesson_type: LessonType) -> int:
    """Default duration for a lesson of ``lesson_type`` titled ``title``.

    Quizzes and tests keep their fixed durations; lessons and reviews are
    shortened for introductions and lengthened for projects and labs.
    """
    if lesson_type in (LessonType.QUIZ, LessonType.TEST):
        return _BASE_MINUTES[lesson_type]
    lowered = title.lower()
    if any(keyword in lowered for keyword in _SHORT_SESSION_KEYWORDS):
        return SHORT_SESSION_MINUTES
    if any(keyword in lowered for keyword in _LONG_SESSION_KEYWORDS):
        return LONG_SESSION_MINUTES
    return _BASE_MINUTES[lesson_type]


def infer_lesson_type(title: str) -> tuple[LessonType, int]:
    """Classify a title and return ``(type, estimated_minutes)``."""
    lesson_type = infer_type(title)
    return lesson_type, estimate_minutes(title, lesson_type)


# ---------------------------------------------------------------------------
# STEP C — numbering and the full parse
# ---------------------------------------------------------------------------

class LessonNumberer:
    """Running lesson counter, scoped to a single parse."""

    def __init__(self, start: int = 1):
        self.current = start
        self.saw_explicit = False

    def next(self, explicit: Optional[int] = None) -> int:
        if explicit is not None:
            self.current = max(explicit, 1)
            self.saw_explicit = True
        number = self.current
        self.current += 1
        return number


def parse_lessons(content: str) -> tuple[list[ParsedLesson], bool]:
    """Parse ``content`` into lessons.

    Returns the lessons and whether any line carried its own number.
    """
    numberer = LessonNumberer()
    lessons: list[ParsedLesson] = []

    for line in split_lines(content):
        classified = classify_line(line)
        if classified is None:
            continue
        lesson_type, minutes = infer_lesson_type(classified.title)
        lessons.append(ParsedLesson(
            lesson_number=numberer.next(classified.number),
            title=classified.title,
            type=lesson_type,
            estimated_minutes=minutes,
            description=None,
        ))

    return lessons, numberer.saw_explicit


def parse_content(content: str) -> ParseResult:
    """Parse pasted text and attach import suggestions."""
    lessons, explicitly_numbered = parse_lessons(content)
    suggestions = generate_import_suggestions(lessons, explicitly_numbered=explicitly_numbered)
    logger.info(
        "[lesson_parser] parsed %d lessons from %d chars (numbered=%s, suggestions=%d)",
        len(lessons), len(content), explicitly_numbered, len(suggestions),
    )
    return ParseResult(lessons_found=len(lessons), lessons=lessons, suggestions=suggestions)
