"""
Tests for the lesson index parser.

All tests run fully offline; the parser is pure.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.models.curriculum import LessonType
from app.services.import_advisor import ADD_NUMBERS
from app.services.lesson_parser import (
    ClassifiedLine,
    LessonNumberer,
    classify_line,
    infer_lesson_type,
    infer_type,
    parse_content,
    parse_lessons,
    split_lines,
)


def _numbers(content: str) -> list[int]:
    lessons, _ = parse_lessons(content)
    return [l.lesson_number for l in lessons]


# ---------------------------------------------------------------------------
# STEP A — line classification
# ---------------------------------------------------------------------------

class TestClassifyLine:
    def test_headers_and_short_lines_are_skipped(self):
        assert classify_line("Table of Contents") is None
        assert classify_line("Chapter 1") is None
        assert classify_line("CHAPTER TWO: Ratios") is None
        assert classify_line("Hi") is None
        assert classify_line("   ") is None

    def test_lesson_prefix_with_colon(self):
        assert classify_line("Lesson 12: Decimals") == ClassifiedLine(title="Decimals", number=12)

    def test_lesson_prefix_is_case_insensitive_and_space_optional(self):
        assert classify_line("lesson 4 - Ratios") == ClassifiedLine(title="Ratios", number=4)
        assert classify_line("Lesson7 Percents") == ClassifiedLine(title="Percents", number=7)

    def test_bare_number_separators(self):
        assert classify_line("3. Foo") == ClassifiedLine(title="Foo", number=3)
        assert classify_line("5: Baz") == ClassifiedLine(title="Baz", number=5)
        assert classify_line("8 - Area") == ClassifiedLine(title="Area", number=8)
        assert classify_line("9 Volume") == ClassifiedLine(title="Volume", number=9)

    def test_unnumbered_line_is_taken_verbatim(self):
        assert classify_line("  Adding Fractions  ") == ClassifiedLine(title="Adding Fractions")

    def test_test_prefix_is_not_a_lesson_number(self):
        assert classify_line("Test 2: Midterm") == ClassifiedLine(title="Test 2: Midterm")

    def test_garbage_becomes_a_title(self):
        assert classify_line("@@@ ### !!!") == ClassifiedLine(title="@@@ ### !!!")

    def test_oversized_number_becomes_part_of_the_title(self):
        line = "1" * 5000 + " Huge"
        assert classify_line(line) == ClassifiedLine(title=line)


class TestSplitLines:
    def test_drops_blank_lines_and_trims(self):
        assert split_lines("  a \n\n\t\nb\r\n") == ["a", "b"]

    def test_only_newlines_separate_lessons(self):
        assert split_lines("Alpha\u2028Beta\x0bGamma\nDelta") == ["Alpha\u2028Beta\x0bGamma", "Delta"]


# ---------------------------------------------------------------------------
# STEP B — type inference
# ---------------------------------------------------------------------------

class TestInferLessonType:
    def test_quiz_keywords(self):
        assert infer_lesson_type("Fraction Quiz") == (LessonType.QUIZ, 20)
        assert infer_lesson_type("Unit 3 Assessment") == (LessonType.QUIZ, 20)

    def test_test_keywords(self):
        assert infer_lesson_type("Test 2: Midterm") == (LessonType.TEST, 45)
        assert infer_lesson_type("Final Exam") == (LessonType.TEST, 45)
        assert infer_lesson_type("The Final") == (LessonType.TEST, 45)

    def test_review_keywords(self):
        assert infer_lesson_type("Chapter Review Day") == (LessonType.REVIEW, 30)
        assert infer_lesson_type("Practice Set B") == (LessonType.REVIEW, 30)

    def test_plain_lesson(self):
        assert infer_lesson_type("Adding Fractions") == (LessonType.LESSON, 30)

    def test_quiz_wins_over_review(self):
        assert infer_type("Quiz Review") == LessonType.QUIZ

    def test_test_wins_over_review(self):
        assert infer_type("Exam Review") == LessonType.TEST

    def test_case_insensitive(self):
        assert infer_type("QUIZ 4") == LessonType.QUIZ

    def test_intro_and_overview_shorten_lessons_and_reviews(self):
        assert infer_lesson_type("Intro to Fractions") == (LessonType.LESSON, 25)
        assert infer_lesson_type("Introduction to Algebra") == (LessonType.LESSON, 25)
        assert infer_lesson_type("Practice Overview") == (LessonType.REVIEW, 25)

    def test_project_and_lab_lengthen_lessons(self):
        assert infer_lesson_type("Volcano Project") == (LessonType.LESSON, 60)
        assert infer_lesson_type("Lab: Density") == (LessonType.LESSON, 60)

    def test_quiz_and_test_durations_are_fixed(self):
        assert infer_lesson_type("Introduction Quiz") == (LessonType.QUIZ, 20)
        assert infer_lesson_type("Lab Test") == (LessonType.TEST, 45)


# ---------------------------------------------------------------------------
# STEP C — numbering
# ---------------------------------------------------------------------------

class TestNumbering:
    def test_defaults_start_at_one(self):
        assert _numbers("Alpha\nBeta\nGamma") == [1, 2, 3]

    def test_explicit_numbers_reset_the_counter(self):
        assert _numbers("3. Foo\nBar\n5: Baz") == [3, 4, 5]

    def test_gaps_are_kept(self):
        assert _numbers("Lesson 1: A\nLesson 4: B\nMore") == [1, 4, 5]

    def test_lower_explicit_number_is_honoured(self):
        assert _numbers("10 Ten\nNext\n2 Two") == [10, 11, 2]

    def test_skipped_lines_do_not_consume_numbers(self):
        assert _numbers("Alpha\nChapter 2\nBeta") == [1, 2]

    def test_zero_is_clamped_to_one(self):
        numberer = LessonNumberer()
        assert numberer.next(0) == 1
        assert numberer.next() == 2

    def test_numberer_tracks_explicit_numbers(self):
        numberer = LessonNumberer()
        numberer.next()
        assert numberer.saw_explicit is False
        numberer.next(7)
        assert numberer.saw_explicit is True


# ---------------------------------------------------------------------------
# Full parse
# ---------------------------------------------------------------------------

class TestParseContent:
    def test_mixed_index(self):
        result = parse_content("Lesson 1: Intro to Fractions\nFraction Quiz\nTest 2: Midterm")
        assert result.lessons_found == 3
        assert [l.type for l in result.lessons] == [LessonType.LESSON, LessonType.QUIZ, LessonType.TEST]
        assert [l.estimated_minutes for l in result.lessons] == [25, 20, 45]
        assert [l.lesson_number for l in result.lessons] == [1, 2, 3]
        assert [l.title for l in result.lessons] == ["Intro to Fractions", "Fraction Quiz", "Test 2: Midterm"]
        assert all(l.description is None for l in result.lessons)

    def test_noise_only_input_yields_no_lessons(self):
        for content in ("Table of Contents", "Chapter 1", "Hi"):
            assert parse_content(content).lessons_found == 0

    def test_length_matches_non_skipped_lines(self):
        content = "Table of Contents\n\nChapter 1\n1. Place Value\nok\n2. Rounding\nReview\n"
        result = parse_content(content)
        assert result.lessons_found == 3
        assert len(result.lessons) == 3

    def test_oversized_number_does_not_break_the_parse(self):
        result = parse_content("1" * 5000 + " Huge\nNext")
        assert [l.lesson_number for l in result.lessons] == [1, 2]
        assert result.lessons[1].title == "Next"

    def test_is_idempotent(self):
        content = "1. A lesson\nQuiz one\nFinal Exam\n"
        assert parse_content(content) == parse_content(content)

    def test_unnumbered_source_suggests_numbers(self):
        result = parse_content("Adding\nSubtracting\nMultiplying")
        assert result.suggestions == [ADD_NUMBERS]

    def test_numbered_source_has_no_number_suggestion(self):
        result = parse_content("1. Adding\n2. Subtracting")
        assert ADD_NUMBERS not in result.suggestions

    def test_json_uses_camel_case(self):
        data = parse_content("1. Adding").model_dump(by_alias=True, mode="json")
        assert data == {
            "lessonsFound": 1,
            "lessons": [{
                "lessonNumber": 1,
                "title": "Adding",
                "type": "lesson",
                "estimatedMinutes": 30,
                "description": None,
            }],
            "suggestions": [],
        }
