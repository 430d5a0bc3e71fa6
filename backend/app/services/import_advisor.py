"""Advisory checks run over a freshly parsed or extracted lesson list."""
from __future__ import annotations

from collections import Counter
from typing import Optional, Sequence

from app.models.curriculum import LessonType, ParsedLesson

ADD_NUMBERS = "Consider adding lesson numbers for better organization"
ADD_QUIZZES = "Consider adding quizzes for periodic assessment"
ADD_TESTS = "Consider adding tests for major assessments"
SPLIT_UNITS = "Large curriculum detected - consider breaking into smaller units"

QUIZ_THRESHOLD = 10
TEST_THRESHOLD = 20
LARGE_CURRICULUM_THRESHOLD = 100


def generate_import_suggestions(
    lessons: Sequence[ParsedLesson],
    explicitly_numbered: Optional[bool] = None,
) -> list[str]:
    """Return human-readable suggestions, in check order.

    ``explicitly_numbered`` says whether the source text carried its own
    lesson numbers. When the caller cannot tell, any positive lesson number
    counts as numbered.
    """
    suggestions: list[str] = []

    if explicitly_numbered is None:
        explicitly_numbered = any(lesson.lesson_number > 0 for lesson in lessons)
    if not explicitly_numbered:
        suggestions.append(ADD_NUMBERS)

    type_count = Counter(lesson.type for lesson in lessons)
    total = len(lessons)

    if not type_count[LessonType.QUIZ] and total > QUIZ_THRESHOLD:
        suggestions.append(ADD_QUIZZES)

    if not type_count[LessonType.TEST] and total > TEST_THRESHOLD:
        suggestions.append(ADD_TESTS)

    if total > LARGE_CURRICULUM_THRESHOLD:
        suggestions.append(SPLIT_UNITS)

    return suggestions
