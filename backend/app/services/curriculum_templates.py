"""
Built-in curriculum templates.

A template knows how to generate the full lesson sequence of a published
curriculum without any pasted text. Generation is a pure function of the
template definition: every position starts as a plain lesson, a periodic
marker (investigation or quiz) is laid over every ``marker.every``-th
position, and a test is laid over every ``test.every``-th position. The test
overlay is applied last, so it wins where both periods coincide.

The registry is built once at import and handed to ``TemplateLoader``;
callers that need a different catalog construct their own loader.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from app.models.curriculum import (
    CurriculumTemplate,
    CurriculumTemplateSummary,
    LessonType,
    ParsedLesson,
)

logger = logging.getLogger("pebbletrack.curriculum_templates")


@dataclass(frozen=True)
class PeriodicOverlay:
    """Replace every ``every``-th lesson with ``"{label} {n // every}"``."""

    every: int
    label: str
    type: LessonType
    minutes: int

    def applies_to(self, n: int) -> bool:
        return n % self.every == 0

    def title_for(self, n: int) -> str:
        return f"{self.label} {n // self.every}"


@dataclass(frozen=True)
class TemplateDefinition:
    id: str
    name: str
    subject: str
    publisher: str
    grade_level: str
    total_lessons: int
    summary: str
    description: str = ""
    base_minutes: int = 30
    generated: bool = True
    # Ordered lowest to highest precedence.
    overlays: tuple[PeriodicOverlay, ...] = field(default_factory=tuple)

    def to_summary(self) -> CurriculumTemplateSummary:
        return CurriculumTemplateSummary(
            id=self.id,
            name=self.name,
            subject=self.subject,
            publisher=self.publisher,
            grade_level=self.grade_level,
            total_lessons=self.total_lessons,
            description=self.summary,
        )


def generate_lessons(definition: TemplateDefinition) -> list[ParsedLesson]:
    lessons: list[ParsedLesson] = []
    for n in range(1, definition.total_lessons + 1):
        title = f"Lesson {n}"
        lesson_type = LessonType.LESSON
        minutes = definition.base_minutes

        for overlay in definition.overlays:
            if overlay.applies_to(n):
                title = overlay.title_for(n)
                lesson_type = overlay.type
                minutes = overlay.minutes

        lessons.append(ParsedLesson(
            lesson_number=n,
            title=title,
            type=lesson_type,
            estimated_minutes=minutes,
            description=f"{definition.name} - {title}",
        ))
    return lessons


SAXON_MATH_76 = TemplateDefinition(
    id="saxon-math-76",
    name="Saxon Math 7/6",
    subject="Math",
    publisher="Saxon Publishers",
    grade_level="7th Grade",
    total_lessons=120,
    summary="Saxon Math 7/6 complete lesson structure with investigations and tests",
    description="Complete Saxon Math 7/6 curriculum",
    base_minutes=30,
    overlays=(
        PeriodicOverlay(every=10, label="Investigation", type=LessonType.REVIEW, minutes=45),
        PeriodicOverlay(every=20, label="Test", type=LessonType.TEST, minutes=50),
    ),
)

TEACHING_TEXTBOOKS_ALGEBRA = TemplateDefinition(
    id="teaching-textbooks-algebra",
    name="Teaching Textbooks Algebra 1",
    subject="Math",
    publisher="Teaching Textbooks",
    grade_level="High School",
    total_lessons=122,
    summary="Teaching Textbooks Algebra 1 with CD-ROM lessons and assessments",
    description="Teaching Textbooks Algebra 1 complete curriculum",
    base_minutes=35,
    overlays=(
        PeriodicOverlay(every=15, label="Quiz", type=LessonType.QUIZ, minutes=25),
        PeriodicOverlay(every=30, label="Test", type=LessonType.TEST, minutes=45),
    ),
)

# Listed in the catalog; no lesson generator yet.
APOLOGIA_GENERAL_SCIENCE = TemplateDefinition(
    id="apologia-general-science",
    name="Apologia General Science",
    subject="Science",
    publisher="Apologia",
    grade_level="Middle School",
    total_lessons=16,
    summary="Apologia General Science modules with experiments and reviews",
    generated=False,
)

TRAIL_GUIDE_GEOGRAPHY = TemplateDefinition(
    id="trail-guide-geography",
    name="Trail Guide to Geography",
    subject="Geography",
    publisher="Geography Matters",
    grade_level="Elementary",
    total_lessons=36,
    summary="Trail Guide to Geography weekly lessons covering world geography",
    generated=False,
)


def build_registry(*definitions: TemplateDefinition) -> Mapping[str, TemplateDefinition]:
    """Read-only id → definition mapping, in catalog order."""
    return MappingProxyType({d.id: d for d in definitions})


DEFAULT_REGISTRY = build_registry(
    SAXON_MATH_76,
    TEACHING_TEXTBOOKS_ALGEBRA,
    APOLOGIA_GENERAL_SCIENCE,
    TRAIL_GUIDE_GEOGRAPHY,
)


class TemplateLoader:
    """Lists and loads templates from an injected registry."""

    def __init__(self, registry: Mapping[str, TemplateDefinition] = DEFAULT_REGISTRY):
        self._registry = registry

    def list_templates(self) -> list[CurriculumTemplateSummary]:
        return [definition.to_summary() for definition in self._registry.values()]

    def load_template(self, template_id: str) -> Optional[CurriculumTemplate]:
        """Generate the template's lessons, or None for an unknown id."""
        definition = self._registry.get(template_id)
        if definition is None or not definition.generated:
            logger.debug("[curriculum_templates] template not found: %s", template_id)
            return None

        return CurriculumTemplate(
            name=definition.name,
            subject=definition.subject,
            publisher=definition.publisher,
            grade_level=definition.grade_level,
            description=definition.description,
            lessons=generate_lessons(definition),
        )


_loader = TemplateLoader()


def get_template_loader() -> TemplateLoader:
    return _loader


def list_templates() -> list[CurriculumTemplateSummary]:
    return _loader.list_templates()


def load_template(template_id: str) -> Optional[CurriculumTemplate]:
    return _loader.load_template(template_id)
