import json

import pytest
from fastapi.testclient import TestClient

from src.block_feedback.config import settings
from src.block_feedback.documents.loader import InMemoryDocumentStore
from src.block_feedback.main import app
from src.block_feedback.notes.store import InMemoryNoteStore
from src.block_feedback.policy.rate_limit import RateLimiter
from src.block_feedback.schemas.notes import Document
from src.block_feedback.schemas.request import Block

HAPPY_RESPONSE = json.dumps(
    {
        "summary": "Needs more context.",
        "feedback": [
            {
                "block_id": "b1",
                "category": "content",
                "severity": "suggestion",
                "title": "Add context",
                "feedback": "Jumps in too fast.",
                "suggestion": "Explain why first.",
            }
        ],
    }
)


def feedback_json(*items: dict, summary: str = "Summary.") -> str:
    return json.dumps({"summary": summary, "feedback": list(items)})


def item(block_id="b1", category="content", severity="suggestion", title="Add context", **extra) -> dict:
    data = {
        "block_id": block_id,
        "category": category,
        "severity": severity,
        "title": title,
        "feedback": "Jumps in too fast.",
    }
    data.update(extra)
    return data


class FakeInvoker:
    """Stands in for AIInvoker: replays queued responses or exceptions."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def invoke(self, prompt, system_instruction, model, max_retries=None):
        self.calls.append({"prompt": prompt, "system_instruction": system_instruction, "model": model})
        response = self.responses.pop(0) if self.responses else HAPPY_RESPONSE
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def sample_blocks() -> list[Block]:
    return [
        Block(id="b1", type="paragraph", text="Plugins are easy.", position=0),
        Block(id="b2", type="heading", text="Why plugins matter", position=1),
        Block(id="b3", type="paragraph", text="   ", position=2),
    ]


@pytest.fixture
def documents() -> InMemoryDocumentStore:
    return InMemoryDocumentStore({42: Document(id=42, title="Plugin Guide")})


@pytest.fixture
def note_store() -> InMemoryNoteStore:
    return InMemoryNoteStore()


@pytest.fixture(autouse=True)
def no_mock_mode(monkeypatch):
    monkeypatch.setattr(settings, "mock_mode", False)


@pytest.fixture
def client(monkeypatch, documents, note_store):
    monkeypatch.setattr(settings, "auth_token", "test-token")

    app.state.documents = documents
    app.state.note_store = note_store
    app.state.rate_limiter = RateLimiter(max_reviews=10, window_seconds=3600)
    app.state.invoker = FakeInvoker()

    return TestClient(app)


AUTH_HEADER = {"Authorization": "Bearer test-token"}
