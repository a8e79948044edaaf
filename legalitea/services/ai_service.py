# ai_service.py
import asyncio
import json
import logging
import re
from typing import Any, Callable, Dict, Iterable, Optional

import google.generativeai as genai

from legalitea.config import DEFAULT_MODEL_NAME
from legalitea.errors import AIResponseError, AIServiceUnavailableError
from legalitea.services.fallback import (
    fallback_quiz,
    fallback_scenarios,
    fallback_term_explanation,
    generate_fallback_analysis,
)
from legalitea.services.prompts import (
    build_analysis_prompt,
    build_quiz_prompt,
    build_scenario_prompt,
    build_term_prompt,
)

logger = logging.getLogger(__name__)

REQUIRED_ANALYSIS_KEYS = ("summary", "keyInformation", "riskAssessment", "actionPlan")

_OPENING_FENCE = re.compile(r"^```(?:json)?\n?")
_CLOSING_FENCE = re.compile(r"\n?```$")


# --- Response cleanup ---
def clean_json_response(text: str) -> Any:
    """Strip a surrounding markdown code fence and parse the remaining JSON."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return json.loads(cleaned)


def missing_keys(payload: Dict[str, Any], required: Iterable[str]) -> list:
    return [key for key in required if not payload.get(key)]


def has_required_analysis_fields(payload: Any) -> bool:
    return isinstance(payload, dict) and not missing_keys(payload, REQUIRED_ANALYSIS_KEYS)


class AIService:
    """Builds prompts, calls Gemini and turns its answers into JSON documents.

    Every public coroutine returns a static fallback document when the model
    call fails, unless ``fallback_enabled`` is off, in which case the failure
    surfaces as :class:`AIServiceUnavailableError`.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_MODEL_NAME,
        *,
        fallback_enabled: bool = True,
        model: Any = None,
    ) -> None:
        self.model_name = model_name
        self.fallback_enabled = fallback_enabled
        self._model = model
        if self._model is None and api_key:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(model_name)
            logger.info("Gemini model %s configured", model_name)
        elif self._model is None:
            logger.warning("GEMINI_API_KEY not set; every request will use fallback data")

    @property
    def configured(self) -> bool:
        return self._model is not None

    # --- Model access ---
    def _generate(self, prompt: str) -> str:
        if self._model is None:
            raise AIServiceUnavailableError("Gemini API key is not configured")
        response = self._model.generate_content(prompt, stream=True)
        return "".join(chunk.text for chunk in response)

    async def _request_json(self, prompt: str, required: Iterable[str] = ()) -> Dict[str, Any]:
        raw = await asyncio.to_thread(self._generate, prompt)
        try:
            payload = clean_json_response(raw)
        except json.JSONDecodeError as exc:
            raise AIResponseError(f"Gemini API returned invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise AIResponseError("Gemini API returned JSON that is not an object")
        absent = missing_keys(payload, required)
        if absent:
            raise AIResponseError(f"Invalid analysis structure from AI, missing: {', '.join(absent)}")
        return payload

    def _fallback(self, operation: str, exc: Exception, build: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        if not self.fallback_enabled:
            if isinstance(exc, AIServiceUnavailableError):
                raise exc
            raise AIServiceUnavailableError(f"Gemini API error during {operation}: {exc}") from exc
        logger.warning("Gemini API error during %s, serving fallback: %s", operation, exc, exc_info=True)
        return build()

    # --- Operations ---
    async def analyze_document(
        self, text: str, document_type: Optional[str] = "document", language: str = "en"
    ) -> Dict[str, Any]:
        try:
            return await self._request_json(build_analysis_prompt(text, language), REQUIRED_ANALYSIS_KEYS)
        except Exception as exc:
            return self._fallback("analysis", exc, lambda: generate_fallback_analysis(text, document_type))

    async def explain_term(
        self,
        term: str,
        context: Optional[str] = None,
        document_type: Optional[str] = None,
        language: str = "en",
    ) -> Dict[str, Any]:
        try:
            return await self._request_json(build_term_prompt(term, context, document_type, language))
        except Exception as exc:
            return self._fallback("term explanation", exc, lambda: fallback_term_explanation(term))

    async def generate_scenarios(
        self, clause: str, document_type: Optional[str] = None, language: str = "en"
    ) -> Dict[str, Any]:
        try:
            return await self._request_json(build_scenario_prompt(clause, document_type, language))
        except Exception as exc:
            return self._fallback("scenario generation", exc, fallback_scenarios)

    async def generate_quiz(
        self, document_text: str, difficulty: str = "medium", language: str = "en"
    ) -> Dict[str, Any]:
        try:
            return await self._request_json(build_quiz_prompt(document_text, difficulty, language))
        except Exception as exc:
            return self._fallback("quiz generation", exc, lambda: fallback_quiz(difficulty))
