"""
Curriculum persistence.

Two stores share one interface:

  SupabaseCurriculumStore — ``curriculums`` and ``curriculum_lessons`` tables,
    snake_case columns, accessed through the service-role Supabase client.
  InMemoryCurriculumStore — process-local dicts, used when Supabase is not
    configured (local runs, tests).

``get_curriculum_store()`` picks one from settings and caches it.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Iterable, Protocol

from app.core.config import get_settings
from app.models.curriculum import (
    Curriculum,
    CurriculumLesson,
    NewCurriculum,
    NewCurriculumLesson,
)

logger = logging.getLogger("pebbletrack.curriculum_store")

CURRICULUMS_TABLE = "curriculums"
LESSONS_TABLE = "curriculum_lessons"


class CurriculumStoreError(Exception):
    """Base class for store failures the API maps to client errors."""


class CurriculumNotFound(CurriculumStoreError):
    def __init__(self, curriculum_id: int):
        super().__init__(f"Curriculum {curriculum_id} not found")
        self.curriculum_id = curriculum_id


class DuplicateLessonNumber(CurriculumStoreError):
    def __init__(self, curriculum_id: int, lesson_number: int):
        super().__init__(
            f"Lesson {lesson_number} already exists in curriculum {curriculum_id}"
        )
        self.curriculum_id = curriculum_id
        self.lesson_number = lesson_number


class CurriculumStore(Protocol):
    def list_curricula(self, parent_id: str) -> list[Curriculum]: ...

    def get_curriculum(self, curriculum_id: int) -> Curriculum | None: ...

    def create_curriculum(self, data: NewCurriculum) -> Curriculum: ...

    def get_curriculum_lessons(self, curriculum_id: int) -> list[CurriculumLesson]: ...

    def create_curriculum_lesson(self, data: NewCurriculumLesson) -> CurriculumLesson: ...

    def create_curriculum_with_lessons(
        self, data: NewCurriculum, lessons: Iterable[NewCurriculumLesson]
    ) -> tuple[Curriculum, list[CurriculumLesson]]: ...


def _lesson_rows(curriculum_id: int, lessons: Iterable[NewCurriculumLesson]) -> list[NewCurriculumLesson]:
    return [lesson.model_copy(update={"curriculum_id": curriculum_id}) for lesson in lessons]


def _check_unique_numbers(curriculum_id: int, lessons: list[NewCurriculumLesson]) -> None:
    seen: set[int] = set()
    for lesson in lessons:
        if lesson.lesson_number in seen:
            raise DuplicateLessonNumber(curriculum_id, lesson.lesson_number)
        seen.add(lesson.lesson_number)


# ──────────────────────────────────────────────
# In-memory
# ──────────────────────────────────────────────

class InMemoryCurriculumStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._curricula: dict[int, Curriculum] = {}
        self._lessons: dict[int, CurriculumLesson] = {}
        self._next_curriculum_id = 1
        self._next_lesson_id = 1

    def list_curricula(self, parent_id: str) -> list[Curriculum]:
        with self._lock:
            return [c for c in self._curricula.values() if c.parent_id == parent_id]

    def get_curriculum(self, curriculum_id: int) -> Curriculum | None:
        with self._lock:
            return self._curricula.get(curriculum_id)

    def create_curriculum(self, data: NewCurriculum) -> Curriculum:
        with self._lock:
            return self._insert_curriculum(data)

    def get_curriculum_lessons(self, curriculum_id: int) -> list[CurriculumLesson]:
        with self._lock:
            lessons = [l for l in self._lessons.values() if l.curriculum_id == curriculum_id]
        return sorted(lessons, key=lambda l: l.lesson_number)

    def create_curriculum_lesson(self, data: NewCurriculumLesson) -> CurriculumLesson:
        with self._lock:
            if data.curriculum_id not in self._curricula:
                raise CurriculumNotFound(data.curriculum_id)
            taken = {
                l.lesson_number for l in self._lessons.values()
                if l.curriculum_id == data.curriculum_id
            }
            if data.lesson_number in taken:
                raise DuplicateLessonNumber(data.curriculum_id, data.lesson_number)
            return self._insert_lesson(data)

    def create_curriculum_with_lessons(
        self, data: NewCurriculum, lessons: Iterable[NewCurriculumLesson]
    ) -> tuple[Curriculum, list[CurriculumLesson]]:
        lessons = list(lessons)
        with self._lock:
            curriculum_id = self._next_curriculum_id
            rows = _lesson_rows(curriculum_id, lessons)
            _check_unique_numbers(curriculum_id, rows)
            curriculum = self._insert_curriculum(data)
            created = [self._insert_lesson(row) for row in rows]
        return curriculum, created

    # caller holds the lock
    def _insert_curriculum(self, data: NewCurriculum) -> Curriculum:
        curriculum = Curriculum(
            id=self._next_curriculum_id,
            created_at=datetime.now(timezone.utc),
            **data.model_dump(),
        )
        self._curricula[curriculum.id] = curriculum
        self._next_curriculum_id += 1
        return curriculum

    def _insert_lesson(self, data: NewCurriculumLesson) -> CurriculumLesson:
        lesson = CurriculumLesson(id=self._next_lesson_id, **data.model_dump())
        self._lessons[lesson.id] = lesson
        self._next_lesson_id += 1
        return lesson


# ──────────────────────────────────────────────
# Supabase
# ──────────────────────────────────────────────

def _curriculum_from_row(row: dict) -> Curriculum:
    return Curriculum(
        id=row["id"],
        parent_id=row["parent_id"],
        name=row["name"],
        subject=row["subject"],
        publisher=row.get("publisher"),
        grade_level=row.get("grade_level"),
        description=row.get("description"),
        total_lessons=row.get("total_lessons") or 0,
        created_at=row.get("created_at"),
    )


def _lesson_from_row(row: dict) -> CurriculumLesson:
    return CurriculumLesson(
        id=row["id"],
        curriculum_id=row["curriculum_id"],
        lesson_number=row["lesson_number"],
        title=row["title"],
        type=row.get("type") or "lesson",
        description=row.get("description"),
        estimated_minutes=row.get("estimated_minutes") or 30,
    )


def _lesson_to_row(data: NewCurriculumLesson) -> dict:
    return {
        "curriculum_id": data.curriculum_id,
        "lesson_number": data.lesson_number,
        "title": data.title,
        "type": data.type.value,
        "description": data.description,
        "estimated_minutes": data.estimated_minutes,
    }


class SupabaseCurriculumStore:
    def __init__(self, client):
        self.client = client

    def list_curricula(self, parent_id: str) -> list[Curriculum]:
        result = self.client.table(CURRICULUMS_TABLE) \
            .select("*") \
            .eq("parent_id", parent_id) \
            .order("created_at", desc=False) \
            .execute()
        return [_curriculum_from_row(row) for row in result.data or []]

    def get_curriculum(self, curriculum_id: int) -> Curriculum | None:
        result = self.client.table(CURRICULUMS_TABLE) \
            .select("*") \
            .eq("id", curriculum_id) \
            .limit(1) \
            .execute()
        if not result.data:
            return None
        return _curriculum_from_row(result.data[0])

    def create_curriculum(self, data: NewCurriculum) -> Curriculum:
        result = self.client.table(CURRICULUMS_TABLE).insert(data.model_dump()).execute()
        if not result.data:
            raise CurriculumStoreError("Failed to create curriculum")
        return _curriculum_from_row(result.data[0])

    def get_curriculum_lessons(self, curriculum_id: int) -> list[CurriculumLesson]:
        result = self.client.table(LESSONS_TABLE) \
            .select("*") \
            .eq("curriculum_id", curriculum_id) \
            .order("lesson_number", desc=False) \
            .execute()
        return [_lesson_from_row(row) for row in result.data or []]

    def create_curriculum_lesson(self, data: NewCurriculumLesson) -> CurriculumLesson:
        if self.get_curriculum(data.curriculum_id) is None:
            raise CurriculumNotFound(data.curriculum_id)
        existing = self.client.table(LESSONS_TABLE) \
            .select("id") \
            .eq("curriculum_id", data.curriculum_id) \
            .eq("lesson_number", data.lesson_number) \
            .execute()
        if existing.data:
            raise DuplicateLessonNumber(data.curriculum_id, data.lesson_number)

        result = self.client.table(LESSONS_TABLE).insert(_lesson_to_row(data)).execute()
        if not result.data:
            raise CurriculumStoreError("Failed to create lesson")
        return _lesson_from_row(result.data[0])

    def create_curriculum_with_lessons(
        self, data: NewCurriculum, lessons: Iterable[NewCurriculumLesson]
    ) -> tuple[Curriculum, list[CurriculumLesson]]:
        lessons = list(lessons)
        _check_unique_numbers(0, lessons)
        curriculum = self.create_curriculum(data)
        rows = _lesson_rows(curriculum.id, lessons)
        if not rows:
            return curriculum, []

        try:
            result = self.client.table(LESSONS_TABLE) \
                .insert([_lesson_to_row(row) for row in rows]) \
                .execute()
        except Exception:
            # No multi-table transactions over PostgREST; drop the orphan.
            logger.error(
                "[curriculum_store] lesson insert failed for curriculum %s; rolling back",
                curriculum.id, exc_info=True,
            )
            self.client.table(CURRICULUMS_TABLE).delete().eq("id", curriculum.id).execute()
            raise
        return curriculum, [_lesson_from_row(row) for row in result.data or []]


@lru_cache
def get_curriculum_store() -> CurriculumStore:
    settings = get_settings()
    if settings.supabase_url and settings.supabase_service_key:
        from app.core.deps import get_supabase_client
        logger.info("[curriculum_store] using Supabase store")
        return SupabaseCurriculumStore(get_supabase_client())
    logger.warning("[curriculum_store] Supabase not configured; using in-memory store")
    return InMemoryCurriculumStore()
