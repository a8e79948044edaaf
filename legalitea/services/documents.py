# documents.py
import io
import logging
import os
from dataclasses import dataclass

import fitz  # PyMuPDF
from docx import Document

from legalitea.config import MEGABYTE
from legalitea.errors import DocumentExtractionError, PayloadTooLargeError

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * MEGABYTE


@dataclass
class ExtractedDocument:
    filename: str
    document_type: str
    text: str

    @property
    def characters(self) -> int:
        return len(self.text)


# --- Document Processing Utilities ---
def extract_text_from_pdf(file_content: bytes) -> str:
    with fitz.open(stream=file_content, filetype="pdf") as doc:
        return "".join(page.get_text() for page in doc)


def extract_text_from_docx(file_content: bytes) -> str:
    doc = Document(io.BytesIO(file_content))
    return "\n".join(p.text for p in doc.paragraphs)


def extract_text_from_txt(file_content: bytes) -> str:
    return file_content.decode("utf-8")


TEXT_EXTRACTORS = {
    ".pdf": ("pdf", extract_text_from_pdf),
    ".docx": ("docx", extract_text_from_docx),
    ".txt": ("text", extract_text_from_txt),
}


def detect_document_kind(filename: str) -> str:
    """Map a filename to ``pdf``, ``docx`` or ``text``."""
    extension = os.path.splitext(filename)[1].lower()
    if extension not in TEXT_EXTRACTORS:
        raise DocumentExtractionError(f"Unsupported file type: {extension or filename}. Please upload a PDF or DOCX file")
    return TEXT_EXTRACTORS[extension][0]


def extract_text(filename: str, file_content: bytes, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> ExtractedDocument:
    """Extract plain text from an uploaded PDF, DOCX or TXT file."""
    if len(file_content) > max_bytes:
        raise PayloadTooLargeError(f"File size must be under {max_bytes // MEGABYTE}MB")

    kind = detect_document_kind(filename)
    extension = os.path.splitext(filename)[1].lower()
    _, extractor = TEXT_EXTRACTORS[extension]

    try:
        text = extractor(file_content)
    except Exception as exc:
        logger.warning("Text extraction failed for %s: %s", filename, exc)
        raise DocumentExtractionError(
            f"Failed to extract text from document. Please try another file. Error: {exc}"
        ) from exc

    text = text.strip()
    if not text:
        raise DocumentExtractionError("Could not extract text from document.")

    logger.info("Extracted %d characters from %s", len(text), filename)
    return ExtractedDocument(filename=filename, document_type=kind, text=text)
