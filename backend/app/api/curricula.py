import base64
import logging

from fastapi import APIRouter, HTTPException, Header, UploadFile, File, Form

from app.core.config import get_settings
from app.models.curriculum import (
    AddLessonRequest,
    ApplyTemplateRequest,
    CreateCurriculumRequest,
    CsvImportRequest,
    CsvImportResponse,
    Curriculum,
    CurriculumLesson,
    CurriculumTemplate,
    CurriculumTemplateSummary,
    DEFAULT_LESSON_MINUTES,
    ExtractLessonsRequest,
    ExtractLessonsResponse,
    LessonType,
    NewCurriculum,
    NewCurriculumLesson,
    ParseRequest,
    ParseResult,
)
from app.services.curriculum_store import (
    CurriculumNotFound,
    DuplicateLessonNumber,
    get_curriculum_store,
)
from app.services.curriculum_templates import get_template_loader
from app.services.document_text import (
    DocumentReadError,
    extract_text,
    image_mime_type,
    is_image,
)
from app.services.import_advisor import generate_import_suggestions
from app.services.lesson_extractor import LessonExtractionError, get_lesson_extractor
from app.services.lesson_parser import MIN_LINE_LENGTH, parse_content
from app.services.telemetry import instrument, emit_event

logger = logging.getLogger("pebbletrack.curricula")
router = APIRouter(prefix="/api/curricula", tags=["curricula"])

settings = get_settings()
store = get_curriculum_store()
templates = get_template_loader()


def resolve_parent_id(x_parent_id: str | None) -> str:
    """Parent id from the X-Parent-Id header; auth lives in front of this service."""
    return (x_parent_id or "").strip() or settings.default_parent_id


def _reject_duplicate_numbers(numbers: list[int]) -> None:
    seen: set[int] = set()
    for number in numbers:
        if number in seen:
            raise HTTPException(status_code=400, detail=f"Duplicate lesson number: {number}")
        seen.add(number)


# ──────────────────────────────────────────────
# Templates
# ──────────────────────────────────────────────

@router.get("/templates", response_model=list[CurriculumTemplateSummary])
async def list_curriculum_templates():
    """List the built-in curriculum templates."""
    return templates.list_templates()


@router.get("/templates/{template_id}", response_model=CurriculumTemplate)
@instrument(route="/api/curricula/templates/{template_id}")
async def get_curriculum_template(template_id: str):
    """Generate the full lesson list for a built-in template."""
    template = templates.load_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.post("/templates/{template_id}/apply", response_model=CsvImportResponse)
@instrument(route="/api/curricula/templates/{template_id}/apply")
async def apply_curriculum_template(
    template_id: str,
    request: ApplyTemplateRequest | None = None,
    x_parent_id: str | None = Header(None),
):
    """Create a curriculum, with all its lessons, from a built-in template."""
    parent_id = resolve_parent_id(x_parent_id)
    template = templates.load_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")

    name = (request.name if request and request.name else template.name)
    try:
        curriculum, lessons = store.create_curriculum_with_lessons(
            NewCurriculum(
                parent_id=parent_id,
                name=name,
                subject=template.subject,
                publisher=template.publisher,
                grade_level=template.grade_level,
                description=template.description,
                total_lessons=len(template.lessons),
            ),
            [
                NewCurriculumLesson(curriculum_id=0, **lesson.model_dump())
                for lesson in template.lessons
            ],
        )
    except Exception as e:
        logger.error("Error applying template %s: %s", template_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create curriculum from template")

    emit_event("template_applied", route="/api/curricula/templates/{template_id}/apply",
               parent_id=parent_id, curriculum_id=curriculum.id, lessons=len(lessons), ok=True)
    return CsvImportResponse(
        curriculum=curriculum,
        lessons_imported=len(lessons),
        message=f'Created "{curriculum.name}" with {len(lessons)} lessons',
    )


# ──────────────────────────────────────────────
# Parsing and extraction
# ──────────────────────────────────────────────

@router.post("/parse", response_model=ParseResult)
@instrument(route="/api/curricula/parse")
async def parse_curriculum_content(request: ParseRequest):
    """Parse pasted lesson-index text and suggest a lesson structure."""
    if not request.content or not request.content.strip():
        raise HTTPException(status_code=400, detail="Content is required")

    try:
        return parse_content(request.content)
    except Exception as e:
        logger.error("Error parsing content: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to parse content")


@router.post("/parse/upload", response_model=ParseResult)
@instrument(route="/api/curricula/parse/upload")
async def parse_curriculum_upload(
    file: UploadFile = File(...),
    curriculum_name: str | None = Form(None),
):
    """Parse an uploaded lesson index (PDF, text file, or image)."""
    file_content = await file.read()
    filename = file.filename or "unknown"

    if is_image(filename):
        encoded = base64.b64encode(file_content).decode("utf-8")
        try:
            lessons = await get_lesson_extractor().extract_from_image(
                encoded, curriculum_name or "curriculum", mime_type=image_mime_type(filename),
            )
        except LessonExtractionError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return ParseResult(
            lessons_found=len(lessons),
            lessons=lessons,
            suggestions=generate_import_suggestions(lessons),
        )

    try:
        text = extract_text(file_content, filename)
    except DocumentReadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if len(text.strip()) < MIN_LINE_LENGTH:
        raise HTTPException(status_code=400, detail="Could not extract meaningful text from the file")

    return parse_content(text)


@router.post("/extract-lessons", response_model=ExtractLessonsResponse)
@instrument(route="/api/curricula/extract-lessons")
async def extract_lessons(request: ExtractLessonsRequest):
    """Extract lessons with the LLM from text or a base64 image."""
    extractor = get_lesson_extractor()
    try:
        if request.extraction_type == "image":
            if not request.image_data:
                raise HTTPException(status_code=400, detail="imageData is required for image extraction")
            lessons = await extractor.extract_from_image(request.image_data, request.curriculum_name)
        else:
            if not request.text_content or not request.text_content.strip():
                raise HTTPException(status_code=400, detail="textContent is required for text extraction")
            lessons = await extractor.extract_from_text(request.text_content, request.curriculum_name)
    except LessonExtractionError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return ExtractLessonsResponse(
        lessons_found=len(lessons),
        lessons=lessons,
        suggestions=generate_import_suggestions(lessons),
        extraction_method=request.extraction_type,
    )


# ──────────────────────────────────────────────
# Curricula
# ──────────────────────────────────────────────

@router.get("", response_model=list[Curriculum])
async def list_curricula(x_parent_id: str | None = Header(None)):
    """List curricula for the parent."""
    try:
        return store.list_curricula(resolve_parent_id(x_parent_id))
    except Exception as e:
        logger.error("Error fetching curricula: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch curricula")


@router.post("", response_model=Curriculum)
@instrument(route="/api/curricula")
async def create_curriculum(
    request: CreateCurriculumRequest,
    x_parent_id: str | None = Header(None),
):
    """Create a curriculum, optionally with its lessons."""
    parent_id = resolve_parent_id(x_parent_id)
    lessons = request.lessons or []
    _reject_duplicate_numbers([lesson.lesson_number for lesson in lessons])

    try:
        curriculum, created = store.create_curriculum_with_lessons(
            NewCurriculum(
                parent_id=parent_id,
                name=request.name,
                subject=request.subject,
                publisher=request.publisher,
                grade_level=request.grade_level,
                description=request.description,
                total_lessons=len(lessons),
            ),
            [
                NewCurriculumLesson(
                    curriculum_id=0,
                    lesson_number=lesson.lesson_number,
                    title=lesson.title,
                    type=lesson.type,
                    description=lesson.description,
                    estimated_minutes=lesson.estimated_minutes or DEFAULT_LESSON_MINUTES,
                )
                for lesson in lessons
            ],
        )
    except Exception as e:
        logger.error("Error creating curriculum: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create curriculum")

    emit_event("curriculum_created", route="/api/curricula", parent_id=parent_id,
               curriculum_id=curriculum.id, lessons=len(created), ok=True)
    return curriculum


@router.post("/import/csv", response_model=CsvImportResponse)
@instrument(route="/api/curricula/import/csv")
async def import_curriculum_csv(
    request: CsvImportRequest,
    x_parent_id: str | None = Header(None),
):
    """Import a curriculum from spreadsheet rows already parsed by the client."""
    parent_id = resolve_parent_id(x_parent_id)
    rows = [
        NewCurriculumLesson(
            curriculum_id=0,
            lesson_number=lesson.lesson_number or index + 1,
            title=lesson.title,
            type=lesson.type or LessonType.LESSON,
            description=lesson.description,
            estimated_minutes=lesson.estimated_minutes or DEFAULT_LESSON_MINUTES,
        )
        for index, lesson in enumerate(request.lessons)
    ]
    _reject_duplicate_numbers([row.lesson_number for row in rows])

    try:
        curriculum, created = store.create_curriculum_with_lessons(
            NewCurriculum(
                parent_id=parent_id,
                name=request.curriculum_name,
                subject=request.curriculum_subject,
                publisher=request.publisher,
                grade_level=request.grade_level,
                description=f"Imported from CSV - {len(rows)} lessons",
                total_lessons=len(rows),
            ),
            rows,
        )
    except Exception as e:
        logger.error("Error importing CSV curriculum: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to import curriculum")

    return CsvImportResponse(
        curriculum=curriculum,
        lessons_imported=len(created),
        message=f'Successfully imported "{curriculum.name}" with {len(created)} lessons',
    )


@router.get("/{curriculum_id}", response_model=Curriculum)
async def get_curriculum(curriculum_id: int):
    """Get a single curriculum by ID."""
    try:
        curriculum = store.get_curriculum(curriculum_id)
    except Exception as e:
        logger.error("Error fetching curriculum %s: %s", curriculum_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch curriculum")

    if curriculum is None:
        raise HTTPException(status_code=404, detail="Curriculum not found")
    return curriculum


@router.get("/{curriculum_id}/lessons", response_model=list[CurriculumLesson])
async def get_curriculum_lessons(curriculum_id: int):
    """List a curriculum's lessons in lesson-number order."""
    try:
        return store.get_curriculum_lessons(curriculum_id)
    except Exception as e:
        logger.error("Error fetching curriculum lessons: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch lessons")


@router.post("/{curriculum_id}/lessons", response_model=CurriculumLesson, status_code=201)
async def add_curriculum_lesson(curriculum_id: int, request: AddLessonRequest):
    """Add a single lesson to an existing curriculum."""
    try:
        return store.create_curriculum_lesson(NewCurriculumLesson(
            curriculum_id=curriculum_id,
            lesson_number=request.lesson_number,
            title=request.title,
            type=request.type,
            description=request.description,
            estimated_minutes=request.estimated_minutes or DEFAULT_LESSON_MINUTES,
        ))
    except CurriculumNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateLessonNumber as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error("Error adding lesson to curriculum %s: %s", curriculum_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add lesson")
