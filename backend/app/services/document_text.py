"""Text extraction for uploaded lesson indexes."""
import io
import logging

from PyPDF2 import PdfReader

logger = logging.getLogger("pebbletrack.document_text")

TEXT_EXTENSIONS = frozenset({"txt", "text", "csv", "md"})
IMAGE_MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


class DocumentReadError(Exception):
    pass


def file_extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.lower().rsplit(".", 1)[-1]


def is_image(filename: str) -> bool:
    return file_extension(filename) in IMAGE_MIME_TYPES


def image_mime_type(filename: str) -> str:
    return IMAGE_MIME_TYPES.get(file_extension(filename), "image/jpeg")


def extract_text_from_pdf(file_content: bytes) -> str:
    """Extract text content from a PDF file."""
    try:
        pdf_reader = PdfReader(io.BytesIO(file_content))
        pages = [page.extract_text() or "" for page in pdf_reader.pages]
    except Exception as e:
        logger.warning("[document_text] unreadable PDF: %s", e)
        raise DocumentReadError(f"Failed to read PDF: {str(e)}")
    return "\n".join(pages).strip()


def extract_text(file_content: bytes, filename: str) -> str:
    """Text of a PDF or plain-text upload. Images are handled by the caller."""
    ext = file_extension(filename)
    if ext == "pdf":
        return extract_text_from_pdf(file_content)
    if ext in TEXT_EXTENSIONS:
        try:
            return file_content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DocumentReadError(f"File is not valid UTF-8 text: {str(e)}")
    raise DocumentReadError(f"Unsupported file type: {ext or filename}")
