"""
Tests for curriculum persistence.

All tests run fully offline — the Supabase client is a MagicMock.
"""
import sys
import os
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from app.models.curriculum import LessonType, NewCurriculum, NewCurriculumLesson
from app.services.curriculum_store import (
    CurriculumNotFound,
    DuplicateLessonNumber,
    InMemoryCurriculumStore,
    SupabaseCurriculumStore,
)


def _curriculum(parent_id="parent-1", name="Saxon", total=0) -> NewCurriculum:
    return NewCurriculum(parent_id=parent_id, name=name, subject="Math", total_lessons=total)


def _lesson(number: int, title: str = "", curriculum_id: int = 0) -> NewCurriculumLesson:
    return NewCurriculumLesson(
        curriculum_id=curriculum_id,
        lesson_number=number,
        title=title or f"Lesson {number}",
    )


class TestInMemoryStore:
    def test_create_with_lessons(self):
        store = InMemoryCurriculumStore()
        curriculum, lessons = store.create_curriculum_with_lessons(
            _curriculum(total=2), [_lesson(2), _lesson(1)]
        )
        assert curriculum.id == 1
        assert curriculum.total_lessons == 2
        assert curriculum.created_at is not None
        assert {l.curriculum_id for l in lessons} == {1}
        assert [l.lesson_number for l in store.get_curriculum_lessons(1)] == [1, 2]

    def test_lessons_default_to_plain_thirty_minutes(self):
        store = InMemoryCurriculumStore()
        _, (lesson,) = store.create_curriculum_with_lessons(_curriculum(total=1), [_lesson(1)])
        assert lesson.type == LessonType.LESSON
        assert lesson.estimated_minutes == 30

    def test_list_is_scoped_to_parent(self):
        store = InMemoryCurriculumStore()
        store.create_curriculum(_curriculum(parent_id="a"))
        store.create_curriculum(_curriculum(parent_id="b"))
        assert [c.parent_id for c in store.list_curricula("a")] == ["a"]

    def test_get_missing_curriculum(self):
        assert InMemoryCurriculumStore().get_curriculum(42) is None

    def test_duplicate_numbers_in_bulk_create_insert_nothing(self):
        store = InMemoryCurriculumStore()
        with pytest.raises(DuplicateLessonNumber):
            store.create_curriculum_with_lessons(_curriculum(total=2), [_lesson(1), _lesson(1)])
        assert store.list_curricula("parent-1") == []

    def test_add_lesson(self):
        store = InMemoryCurriculumStore()
        curriculum = store.create_curriculum(_curriculum())
        lesson = store.create_curriculum_lesson(_lesson(1, curriculum_id=curriculum.id))
        assert lesson.id == 1

    def test_add_lesson_duplicate_number(self):
        store = InMemoryCurriculumStore()
        curriculum = store.create_curriculum(_curriculum())
        store.create_curriculum_lesson(_lesson(1, curriculum_id=curriculum.id))
        with pytest.raises(DuplicateLessonNumber):
            store.create_curriculum_lesson(_lesson(1, curriculum_id=curriculum.id))

    def test_add_lesson_to_missing_curriculum(self):
        with pytest.raises(CurriculumNotFound):
            InMemoryCurriculumStore().create_curriculum_lesson(_lesson(1, curriculum_id=9))


CURRICULUM_ROW = {
    "id": 7,
    "parent_id": "parent-1",
    "name": "Saxon",
    "subject": "Math",
    "publisher": None,
    "grade_level": None,
    "description": None,
    "total_lessons": 1,
    "created_at": "2024-01-01T00:00:00+00:00",
}

LESSON_ROW = {
    "id": 70,
    "curriculum_id": 7,
    "lesson_number": 1,
    "title": "Lesson 1",
    "type": "quiz",
    "description": None,
    "estimated_minutes": None,
}


class TestSupabaseStore:
    def test_list_curricula(self):
        client = MagicMock()
        client.table().select().eq().order().execute.return_value = MagicMock(data=[CURRICULUM_ROW])
        (curriculum,) = SupabaseCurriculumStore(client).list_curricula("parent-1")
        assert curriculum.id == 7
        assert curriculum.total_lessons == 1

    def test_lessons_fill_defaults(self):
        client = MagicMock()
        client.table().select().eq().order().execute.return_value = MagicMock(data=[LESSON_ROW])
        (lesson,) = SupabaseCurriculumStore(client).get_curriculum_lessons(7)
        assert lesson.type == LessonType.QUIZ
        assert lesson.estimated_minutes == 30

    def test_create_with_lessons_writes_snake_case_rows(self):
        client = MagicMock()
        client.table().insert().execute.side_effect = [
            MagicMock(data=[CURRICULUM_ROW]),
            MagicMock(data=[LESSON_ROW]),
        ]
        curriculum, lessons = SupabaseCurriculumStore(client).create_curriculum_with_lessons(
            _curriculum(total=1), [_lesson(1)]
        )
        assert curriculum.id == 7
        assert len(lessons) == 1

        rows = client.table().insert.call_args.args[0]
        assert rows == [{
            "curriculum_id": 7,
            "lesson_number": 1,
            "title": "Lesson 1",
            "type": "lesson",
            "description": None,
            "estimated_minutes": 30,
        }]

    def test_failed_lesson_insert_removes_curriculum(self):
        client = MagicMock()
        client.table().insert().execute.side_effect = [
            MagicMock(data=[CURRICULUM_ROW]),
            RuntimeError("db down"),
        ]
        with pytest.raises(RuntimeError):
            SupabaseCurriculumStore(client).create_curriculum_with_lessons(
                _curriculum(total=1), [_lesson(1)]
            )
        client.table().delete().eq.assert_called_with("id", 7)

    def test_add_lesson_to_missing_curriculum(self):
        client = MagicMock()
        client.table().select().eq().limit().execute.return_value = MagicMock(data=[])
        with pytest.raises(CurriculumNotFound):
            SupabaseCurriculumStore(client).create_curriculum_lesson(_lesson(1, curriculum_id=7))

    def test_add_lesson_duplicate_number(self):
        client = MagicMock()
        client.table().select().eq().limit().execute.return_value = MagicMock(data=[CURRICULUM_ROW])
        client.table().select().eq().eq().execute.return_value = MagicMock(data=[{"id": 70}])
        with pytest.raises(DuplicateLessonNumber):
            SupabaseCurriculumStore(client).create_curriculum_lesson(_lesson(1, curriculum_id=7))
