import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from legalitea.config import Settings
from legalitea.dependencies import get_ai_service, get_save_limiter, get_settings, get_store
from legalitea.errors import NotFoundError, RateLimitExceededError, ValidationFailedError
from legalitea.languages import get_supported_languages
from legalitea.schemas import (
    AnalyzeRequest,
    QuizRequest,
    SavedAnalysisList,
    SavedAnalysisResponse,
    SaveRequest,
    SaveResponse,
    ScenarioRequest,
    TermRequest,
)
from legalitea.services.ai_service import AIService
from legalitea.services.rate_limiter import RateLimiter, email_identifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze")
async def analyze_document(
    request: AnalyzeRequest,
    ai_service: AIService = Depends(get_ai_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Analyze a legal document and return the structured result."""
    if len(request.text) >= settings.max_text_length:
        raise ValidationFailedError(
            f"Text too long. Maximum {settings.max_text_length:,} characters allowed."
        )
    language = request.language or "en"
    logger.info("Analyzing document with Gemini AI in %s...", language)
    return await ai_service.analyze_document(request.text, request.document_type or "document", language)


@router.post("/explain-term")
async def explain_term(request: TermRequest, ai_service: AIService = Depends(get_ai_service)) -> Dict[str, Any]:
    language = request.language or "en"
    logger.info('Explaining term "%s" in %s...', request.term, language)
    return await ai_service.explain_term(request.term, request.context, request.document_type, language)


@router.post("/generate-scenarios")
async def generate_scenarios(
    request: ScenarioRequest, ai_service: AIService = Depends(get_ai_service)
) -> Dict[str, Any]:
    language = request.language or "en"
    logger.info("Generating scenarios for clause in %s...", language)
    return await ai_service.generate_scenarios(request.clause, request.document_type, language)


@router.post("/generate-quiz")
async def generate_quiz(request: QuizRequest, ai_service: AIService = Depends(get_ai_service)) -> Dict[str, Any]:
    difficulty = request.difficulty or "medium"
    language = request.language or "en"
    logger.info("Generating quiz with difficulty %s in %s...", difficulty, language)
    return await ai_service.generate_quiz(request.document_text, difficulty, language)


# --- Saved analyses ---
@router.post("/save", response_model=SaveResponse)
async def save_analysis(
    request: SaveRequest,
    store=Depends(get_store),
    limiter: RateLimiter = Depends(get_save_limiter),
) -> SaveResponse:
    """Keep an analysis for later retrieval; records expire after the configured TTL."""
    info = limiter.hit(email_identifier(request.email))
    if not info.allowed:
        raise RateLimitExceededError(
            f"Too many saves. Try again in {info.retry_after} seconds.", retry_after=info.retry_after
        )

    record = await asyncio.to_thread(
        store.save, request.email, request.analysis, request.original_text, request.document_type
    )
    logger.info("Saving analysis for %s with ID: %s", record.email, record.id)
    return SaveResponse(
        id=record.id,
        expires_at=record.expires_at.isoformat(),
        message="Analysis saved successfully",
    )


@router.get("/saved", response_model=SavedAnalysisList)
async def list_saved_analyses(email: str = Query(..., min_length=3), store=Depends(get_store)) -> SavedAnalysisList:
    records = await asyncio.to_thread(store.list_by_email, email)
    return SavedAnalysisList(analyses=[SavedAnalysisResponse(**record.to_dict()) for record in records])


@router.get("/saved/{analysis_id}", response_model=SavedAnalysisResponse)
async def get_saved_analysis(analysis_id: str, store=Depends(get_store)) -> SavedAnalysisResponse:
    record = await asyncio.to_thread(store.get, analysis_id)
    if record is None:
        raise NotFoundError(f"Analysis {analysis_id} not found. It may have expired or never existed.")
    return SavedAnalysisResponse(**record.to_dict())


@router.delete("/saved/{analysis_id}")
async def delete_saved_analysis(analysis_id: str, store=Depends(get_store)) -> Dict[str, str]:
    if not await asyncio.to_thread(store.delete, analysis_id):
        raise NotFoundError("Analysis not found")
    return {"message": f"Analysis {analysis_id} deleted successfully"}


@router.get("/languages")
async def supported_languages() -> Dict[str, Any]:
    """List the languages analyses can be written in."""
    return {"languages": get_supported_languages()}
