from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LessonType(str, Enum):
    LESSON = "lesson"
    QUIZ = "quiz"
    TEST = "test"
    REVIEW = "review"


DEFAULT_LESSON_MINUTES = 30


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParsedLesson(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    lesson_number: int = Field(ge=1)
    title: str = Field(min_length=1)
    type: LessonType
    estimated_minutes: int = Field(gt=0)
    description: str | None = None


class ParseResult(CamelModel):
    lessons_found: int
    lessons: list[ParsedLesson]
    suggestions: list[str]


class CurriculumTemplateSummary(CamelModel):
    id: str
    name: str
    subject: str
    publisher: str
    grade_level: str
    total_lessons: int
    description: str


class CurriculumTemplate(CamelModel):
    name: str
    subject: str
    publisher: str
    grade_level: str
    description: str
    lessons: list[ParsedLesson]


# ──────────────────────────────────────────────
# Stored records
# ──────────────────────────────────────────────

class Curriculum(CamelModel):
    id: int
    parent_id: str
    name: str
    subject: str
    publisher: str | None = None
    grade_level: str | None = None
    description: str | None = None
    total_lessons: int = Field(default=0, ge=0)
    created_at: datetime | None = None


class CurriculumLesson(CamelModel):
    id: int
    curriculum_id: int
    lesson_number: int
    title: str
    type: LessonType = LessonType.LESSON
    description: str | None = None
    estimated_minutes: int = DEFAULT_LESSON_MINUTES


class NewCurriculum(CamelModel):
    parent_id: str
    name: str
    subject: str
    publisher: str | None = None
    grade_level: str | None = None
    description: str | None = None
    total_lessons: int = Field(default=0, ge=0)


class NewCurriculumLesson(CamelModel):
    curriculum_id: int
    lesson_number: int = Field(ge=1)
    title: str = Field(min_length=1)
    type: LessonType = LessonType.LESSON
    description: str | None = None
    estimated_minutes: int = Field(default=DEFAULT_LESSON_MINUTES, gt=0)


# ──────────────────────────────────────────────
# Request / response bodies
# ──────────────────────────────────────────────

class LessonInput(CamelModel):
    lesson_number: int = Field(ge=1)
    title: str = Field(min_length=1)
    type: LessonType
    description: str | None = None
    estimated_minutes: int | None = Field(default=None, gt=0)


class CreateCurriculumRequest(CamelModel):
    name: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    publisher: str | None = None
    grade_level: str | None = None
    description: str | None = None
    lessons: list[LessonInput] | None = None


class CsvLessonRow(CamelModel):
    lesson_number: int | None = Field(default=None, ge=1)
    title: str = Field(min_length=1)
    type: LessonType | None = None
    estimated_minutes: int | None = Field(default=None, gt=0)
    description: str | None = None


class CsvImportRequest(CamelModel):
    curriculum_name: str = Field(min_length=1)
    curriculum_subject: str = Field(min_length=1)
    publisher: str | None = None
    grade_level: str | None = None
    lessons: list[CsvLessonRow]


class CsvImportResponse(CamelModel):
    curriculum: Curriculum
    lessons_imported: int
    message: str


class AddLessonRequest(CamelModel):
    lesson_number: int = Field(ge=1)
    title: str = Field(min_length=1)
    type: LessonType = LessonType.LESSON
    description: str | None = None
    estimated_minutes: int | None = Field(default=None, gt=0)


class ParseRequest(BaseModel):
    # Validated by hand so a missing or blank value maps to 400, not 422.
    content: str | None = None


class ExtractLessonsRequest(CamelModel):
    curriculum_name: str = "curriculum"
    extraction_type: str = "text"  # text or image
    text_content: str | None = None
    image_data: str | None = None  # base64, with or without a data: prefix


class ExtractLessonsResponse(CamelModel):
    lessons_found: int
    lessons: list[ParsedLesson]
    suggestions: list[str]
    extraction_method: str


class ApplyTemplateRequest(CamelModel):
    name: str | None = None
