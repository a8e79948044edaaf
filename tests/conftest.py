from __future__ import annotations

import json
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, List, Optional, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from legalitea.config import Settings
from legalitea.services.ai_service import AIService
from legalitea.services.storage import InMemoryAnalysisStore


VALID_ANALYSIS = {
    "summary": {"tldr": "A one-year lease.", "keyPoints": ["Rent is $2,500"], "confidence": 0.9},
    "keyInformation": {"parties": ["Landlord", "Tenant"], "dates": [], "monetaryAmounts": [], "obligations": []},
    "riskAssessment": {"overallRisk": "low", "redFlags": [], "recommendations": []},
    "actionPlan": [{"id": "1", "task": "Read it", "priority": "high", "deadline": None, "completed": False}],
}


class StubModel:
    """Stands in for ``genai.GenerativeModel``; replies are queued per call."""

    def __init__(self, replies: Optional[List[Union[str, Exception]]] = None) -> None:
        self.replies = list(replies or [])
        self.prompts: List[str] = []
        self.stream_flags: List[Any] = []

    def queue(self, reply: Union[str, Exception, dict]) -> None:
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        self.replies.append(reply)

    def generate_content(self, prompt: str, stream: bool = False):
        self.prompts.append(prompt)
        self.stream_flags.append(stream)
        if not self.replies:
            raise RuntimeError("Gemini API error: no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        # Split the reply into chunks the way a streamed response arrives
        midpoint = len(reply) // 2
        return [SimpleNamespace(text=reply[:midpoint]), SimpleNamespace(text=reply[midpoint:])]


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        gemini_api_key=None,
        environment="test",
        rate_limit_max=1000,
        save_rate_limit_max=3,
        cors_origins=["http://localhost:5173"],
    )


@pytest.fixture()
def stub_model() -> StubModel:
    return StubModel()


@pytest.fixture()
def ai_service(stub_model: StubModel) -> AIService:
    return AIService(model=stub_model)


@pytest.fixture()
def store() -> InMemoryAnalysisStore:
    return InMemoryAnalysisStore()


@pytest.fixture()
def make_app(settings: Settings, ai_service: AIService, store: InMemoryAnalysisStore) -> Callable[..., Any]:
    from legalitea.main import create_app

    def factory(**overrides: Any):
        app_settings = overrides.pop("settings", settings)
        return create_app(
            app_settings,
            ai_service=overrides.pop("ai_service", ai_service),
            store=overrides.pop("store", store),
        )

    return factory


@pytest.fixture()
def client(make_app):
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient

    return TestClient(make_app())
