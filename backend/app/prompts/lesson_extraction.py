"""Prompt templates for LLM lesson-index extraction."""

LESSON_EXTRACTION_SYSTEM_PROMPT = """You are an expert at analyzing curriculum lesson indexes.
Extract lesson information and return a JSON object with a "lessons" array. Each lesson has:
- lessonNumber: integer
- title: string (lesson title)
- type: "lesson" | "quiz" | "test" | "review"
- description: string (brief description if available) or null
- estimatedMinutes: integer (default 30 for lessons, 25 for quizzes, 45 for tests)

Look for patterns like:
- Lesson numbers (1, 2, 3, etc.)
- Chapter titles or lesson names
- Quiz/Test indicators
- Any section breaks or groupings

Return only valid JSON, no markdown. Be thorough and capture all lessons."""

LESSON_EXTRACTION_TEXT_PROMPT = """Extract all lessons from this {curriculum_name} lesson index text:

{content}

Return a JSON object with a "lessons" array using the structure above."""

LESSON_EXTRACTION_IMAGE_PROMPT = """Extract all lessons from this {curriculum_name} lesson index image.
Return a JSON object with a "lessons" array using the structure above."""
