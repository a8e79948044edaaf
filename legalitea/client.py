"""HTTP client for the LegaliTea API, with retry and exponential backoff."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"


class AnalysisRequestError(Exception):
    """The API rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LegaliTeaClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 120.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._sleep = sleep

    def _post(self, path: str, payload: Dict[str, Any], failure_message: str) -> Dict[str, Any]:
        try:
            response = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AnalysisRequestError(f"{failure_message}: {exc}") from exc

        if not response.ok:
            try:
                error = response.json().get("error")
            except ValueError:
                error = None
            raise AnalysisRequestError(error or f"{failure_message}: {response.status_code}", response.status_code)
        return response.json()

    def analyze(
        self, text: str, document_type: Optional[str] = None, language: Optional[str] = None
    ) -> Dict[str, Any]:
        """Analyze ``text`` and attach the request metadata to the result."""

        result = self._post(
            "/api/analyze",
            {"text": text, "documentType": document_type, "language": language},
            "Analysis failed",
        )
        result.update(
            {
                "originalText": text,
                "documentType": document_type or "unknown",
                "createdAt": datetime.now(timezone.utc).isoformat(),
            }
        )
        return result

    def analyze_with_retry(
        self,
        text: str,
        document_type: Optional[str] = None,
        language: Optional[str] = None,
        max_retries: int = 3,
    ) -> Dict[str, Any]:
        """Call :meth:`analyze` up to ``max_retries`` times, waiting 1s, 2s, 4s... between attempts."""

        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        last_error: Optional[AnalysisRequestError] = None
        for attempt in range(1, max_retries + 1):
            try:
                return self.analyze(text, document_type, language)
            except AnalysisRequestError as exc:
                last_error = exc
                if attempt == max_retries:
                    break
                delay = 2 ** (attempt - 1)
                logger.warning("Analysis attempt %d failed (%s); retrying in %ds", attempt, exc, delay)
                self._sleep(delay)

        raise last_error

    def explain_term(self, term: str, context: Optional[str] = None, language: Optional[str] = None) -> Dict[str, Any]:
        return self._post(
            "/api/explain-term", {"term": term, "context": context, "language": language}, "Term explanation failed"
        )

    def save(self, email: str, analysis: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("/api/save", {"email": email, "analysis": analysis}, "Failed to save analysis")
