import asyncio

from fastapi import APIRouter, Depends, File, UploadFile

from legalitea.config import Settings
from legalitea.dependencies import get_settings
from legalitea.errors import PayloadTooLargeError
from legalitea.schemas import ExtractResponse
from legalitea.services.documents import extract_text

router = APIRouter(prefix="/api", tags=["documents"])


@router.post("/extract", response_model=ExtractResponse)
async def extract_document_text(
    file: UploadFile = File(...), settings: Settings = Depends(get_settings)
) -> ExtractResponse:
    """Extract plain text from an uploaded PDF, DOCX or TXT file for preview."""
    # Read one byte past the limit so oversized uploads are rejected without buffering them whole
    file_content = await file.read(settings.max_upload_bytes + 1)
    if len(file_content) > settings.max_upload_bytes:
        raise PayloadTooLargeError("File too large")

    document = await asyncio.to_thread(
        extract_text, file.filename or "", file_content, settings.max_upload_bytes
    )
    return ExtractResponse(
        filename=document.filename,
        documentType=document.document_type,
        text=document.text,
        characters=document.characters,
    )
