# schemas.py
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Validation messages ---
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
QUIZ_DIFFICULTIES = ("easy", "medium", "hard")

# Messages for required fields that are missing or of the wrong type, keyed by JSON name
REQUIRED_FIELD_MESSAGES = {
    "text": "Text is required and must be a string",
    "term": "Term is required and must be a string",
    "clause": "Clause is required and must be a string",
    "documentText": "Document text is required and must be a string",
    "email": "Email is required and must be a string",
    "analysis": "Analysis is required and must be an object",
}

OPTIONAL_FIELD_LABELS = {
    "documentType": "Document type",
    "language": "Language",
    "context": "Context",
    "difficulty": "Difficulty",
}


def _not_blank(value: str, message: str) -> str:
    if not value.strip():
        raise ValueError(message)
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Request Models ---
class AnalyzeRequest(ApiModel):
    text: str
    document_type: Optional[str] = Field(default=None, alias="documentType")
    language: Optional[str] = None

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        # Length limits are enforced by the route, which knows the configured maximum
        return _not_blank(value, "Text cannot be empty")


class TermRequest(ApiModel):
    term: str
    context: Optional[str] = None
    document_type: Optional[str] = Field(default=None, alias="documentType")
    language: Optional[str] = None

    @field_validator("term")
    @classmethod
    def term_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Term cannot be empty")


class ScenarioRequest(ApiModel):
    clause: str
    document_type: Optional[str] = Field(default=None, alias="documentType")
    language: Optional[str] = None

    @field_validator("clause")
    @classmethod
    def clause_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Clause cannot be empty")


class QuizRequest(ApiModel):
    document_text: str = Field(alias="documentText")
    difficulty: Optional[str] = None
    language: Optional[str] = None

    @field_validator("document_text")
    @classmethod
    def document_text_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Document text cannot be empty")

    @field_validator("difficulty")
    @classmethod
    def difficulty_known(cls, value: Optional[str]) -> Optional[str]:
        if value and value not in QUIZ_DIFFICULTIES:
            raise ValueError("Difficulty must be easy, medium, or hard")
        return value


class SaveRequest(ApiModel):
    email: str
    analysis: Dict[str, Any]

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        if not value:
            raise ValueError(REQUIRED_FIELD_MESSAGES["email"])
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value

    @property
    def original_text(self) -> Any:
        return self.analysis.get("originalText")

    @property
    def document_type(self) -> Any:
        return self.analysis.get("documentType")


# --- Response Models ---
class SaveResponse(BaseModel):
    id: str
    expires_at: str
    message: str


class SavedAnalysisResponse(BaseModel):
    id: str
    email: str
    original_text: str
    analysis_result: Dict[str, Any]
    document_type: str
    created_at: str
    expires_at: str
    saved: bool


class SavedAnalysisList(BaseModel):
    analyses: List[SavedAnalysisResponse]


class ExtractResponse(BaseModel):
    filename: str
    documentType: str
    text: str
    characters: int


def describe_validation_error(error: Dict[str, Any]) -> str:
    """Turn one pydantic error entry into the message shown to API clients."""

    kind = error.get("type", "")
    if kind == "json_invalid":
        return "Invalid JSON in request body"

    location = [part for part in error.get("loc", ()) if part != "body"]
    field = str(location[0]) if location else ""

    if kind == "value_error":
        ctx_error = (error.get("ctx") or {}).get("error")
        if ctx_error is not None:
            return str(ctx_error)
    if field in REQUIRED_FIELD_MESSAGES:
        return REQUIRED_FIELD_MESSAGES[field]
    if field in OPTIONAL_FIELD_LABELS:
        return f"{OPTIONAL_FIELD_LABELS[field]} must be a string"
    if not field:
        return "Request body must be a JSON object"
    return f"{field}: {error.get('msg', 'invalid value')}"
