"""Tests for import suggestions."""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.models.curriculum import LessonType, ParsedLesson
from app.services.import_advisor import (
    ADD_NUMBERS,
    ADD_QUIZZES,
    ADD_TESTS,
    SPLIT_UNITS,
    generate_import_suggestions,
)


def _lessons(count: int, lesson_type: LessonType = LessonType.LESSON) -> list[ParsedLesson]:
    return [
        ParsedLesson(lesson_number=i, title=f"Lesson {i}", type=lesson_type, estimated_minutes=30)
        for i in range(1, count + 1)
    ]


class TestGenerateImportSuggestions:
    def test_large_unassessed_curriculum(self):
        assert generate_import_suggestions(_lessons(150)) == [ADD_QUIZZES, ADD_TESTS, SPLIT_UNITS]

    def test_unnumbered_source_comes_first(self):
        suggestions = generate_import_suggestions(_lessons(150), explicitly_numbered=False)
        assert suggestions == [ADD_NUMBERS, ADD_QUIZZES, ADD_TESTS, SPLIT_UNITS]

    def test_quiz_threshold_is_strict(self):
        assert ADD_QUIZZES not in generate_import_suggestions(_lessons(10))
        assert ADD_QUIZZES in generate_import_suggestions(_lessons(11))

    def test_test_threshold_is_strict(self):
        assert ADD_TESTS not in generate_import_suggestions(_lessons(20))
        assert ADD_TESTS in generate_import_suggestions(_lessons(21))

    def test_existing_quiz_and_test_silence_those_checks(self):
        lessons = _lessons(30)
        lessons.append(ParsedLesson(lesson_number=31, title="Quiz", type=LessonType.QUIZ, estimated_minutes=20))
        lessons.append(ParsedLesson(lesson_number=32, title="Test", type=LessonType.TEST, estimated_minutes=45))
        assert generate_import_suggestions(lessons) == []

    def test_split_threshold_is_strict(self):
        assert SPLIT_UNITS not in generate_import_suggestions(_lessons(100, LessonType.QUIZ))
        assert SPLIT_UNITS in generate_import_suggestions(_lessons(101, LessonType.QUIZ))

    def test_empty_list_without_flag_suggests_numbers(self):
        assert generate_import_suggestions([]) == [ADD_NUMBERS]

    def test_empty_list_with_numbered_flag(self):
        assert generate_import_suggestions([], explicitly_numbered=True) == []
