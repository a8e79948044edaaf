"""Client-side state for one document moving through the analysis stages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from legalitea.client import AnalysisRequestError, LegaliTeaClient
from legalitea.errors import LegaliTeaError
from legalitea.services.documents import extract_text

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 1000


class ProcessingStage(str, Enum):
    UPLOAD = "upload"
    EXTRACT = "extract"
    PREVIEW = "preview"
    ANALYZE = "analyze"
    COMPLETE = "complete"


IDLE_STAGES = frozenset({ProcessingStage.UPLOAD, ProcessingStage.COMPLETE})


@dataclass
class AnalysisSession:
    """Tracks the current stage, the extracted text and the latest result.

    ``is_processing`` follows the stage: it is false while waiting for an
    upload and once the analysis is complete, true in between.
    """

    uploaded_filename: Optional[str] = None
    extracted_text: str = ""
    document_type: Optional[str] = None
    stage: ProcessingStage = ProcessingStage.UPLOAD
    is_processing: bool = False
    progress: int = 0
    show_preview: bool = False
    preview_text: str = ""
    preview_filename: str = ""
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    history: list = field(default_factory=list)

    def set_uploaded_file(self, filename: Optional[str]) -> None:
        self.uploaded_filename = filename
        self.error = None
        if filename:
            extension = Path(filename).suffix.lower().lstrip(".")
            if extension in ("pdf", "docx"):
                self.document_type = extension

    def set_extracted_text(self, text: str) -> None:
        self.extracted_text = text
        if text and not self.uploaded_filename:
            self.document_type = "text"

    def set_stage(self, stage: ProcessingStage) -> None:
        stage = ProcessingStage(stage)
        self.stage = stage
        self.is_processing = stage not in IDLE_STAGES
        self.history.append(stage)

    def set_result(self, result: Optional[Dict[str, Any]]) -> None:
        self.result = result
        if result:
            self.set_stage(ProcessingStage.COMPLETE)
            self.progress = 100

    def fail(self, message: str) -> None:
        self.error = message
        self.set_stage(ProcessingStage.UPLOAD)

    def clear_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        fresh = AnalysisSession()
        self.__dict__.update(fresh.__dict__)

    # --- Driving the stages ---
    def load_text(self, text: str) -> None:
        """Accept pasted text and move straight to the preview stage."""
        self.set_uploaded_file(None)
        self.set_extracted_text(text)
        self._show_preview("Pasted text", text)

    def load_file(self, path: Path, max_bytes: Optional[int] = None) -> str:
        """Extract text from ``path`` and move to the preview stage."""
        path = Path(path)
        self.set_uploaded_file(path.name)
        self.set_stage(ProcessingStage.EXTRACT)
        self.progress = 10
        try:
            kwargs = {"max_bytes": max_bytes} if max_bytes is not None else {}
            document = extract_text(path.name, path.read_bytes(), **kwargs)
        except (LegaliTeaError, OSError) as exc:
            self.fail(str(exc))
            raise
        self.set_extracted_text(document.text)
        self._show_preview(path.name, document.text)
        return document.text

    def _show_preview(self, filename: str, text: str) -> None:
        self.preview_filename = filename
        self.preview_text = text[:PREVIEW_LENGTH]
        self.show_preview = True
        self.progress = 50
        self.set_stage(ProcessingStage.PREVIEW)

    def analyze(
        self, client: LegaliTeaClient, language: Optional[str] = None, *, max_retries: int = 3
    ) -> Dict[str, Any]:
        """Send the extracted text for analysis, retrying with backoff."""
        if not self.extracted_text:
            raise ValueError("No document text loaded")
        self.set_stage(ProcessingStage.ANALYZE)
        self.show_preview = False
        self.error = None
        try:
            result = client.analyze_with_retry(
                self.extracted_text, self.document_type, language, max_retries=max_retries
            )
        except AnalysisRequestError as exc:
            logger.error("Analysis failed: %s", exc)
            self.fail(str(exc))
            raise
        self.set_result(result)
        return result
