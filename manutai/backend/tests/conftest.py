from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["OPENAI_API_KEY"] = "sk-replace-with-valid-openai-key"
os.environ["SESSION_PACING_SECONDS"] = "0"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from database import KeyValueStore
from dependencies import get_assistant, get_key_value_store, get_session_pacing_seconds, get_session_registry
from main import app
from models.checklist_model import ChecklistItem, ChecklistTemplate
from models.report_model import SummaryResult
from models.user_model import User, UserRole
from services.inspection_service import InspectionSessionRegistry
from services.storage_service import SEED_ADMIN_ID, InspectionStorage


class MemoryKeyValueStore(KeyValueStore):
    """In-memory stand-in for the SQL key-value store."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.writes = 0

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes += 1


class ScriptedAssistant:
    """Deterministic generator that records every call it receives."""

    def __init__(self, summary: SummaryResult | None = None) -> None:
        self.question_calls: list[tuple[str, str, list]] = []
        self.summary_calls: list[tuple[str, str, list]] = []
        self.summary = summary or SummaryResult(
            summary="Todos os itens verificados sem problemas.",
            share_text="Tudo certo.",
            issues_found=False,
        )

    def next_question(self, checklist_title, current_item, history):
        self.question_calls.append((checklist_title, current_item.text, list(history)))
        return f"Como está o item {current_item.text}?"

    def summarize(self, checklist_title, technician_name, history):
        self.summary_calls.append((checklist_title, technician_name, list(history)))
        return self.summary


def fake_openai_client(create):
    """Object shaped like ``OpenAI()`` whose completions call ``create``."""
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def completion(content: str | None):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def storage(store) -> InspectionStorage:
    return InspectionStorage(store)


@pytest.fixture
def assistant() -> ScriptedAssistant:
    return ScriptedAssistant()


@pytest.fixture
def registry() -> InspectionSessionRegistry:
    return InspectionSessionRegistry()


@pytest.fixture
def forklift_template() -> ChecklistTemplate:
    return ChecklistTemplate(
        title="Forklift Check",
        items=[ChecklistItem(text="Brakes"), ChecklistItem(text="Lights")],
    )


@pytest.fixture
def technician(storage, admin) -> User:
    return storage.register_user(User(name="Ana", email="ana@example.com", password="segredo", role=UserRole.TECNICO))


@pytest.fixture
def seeded_admin(storage) -> User:
    """Default administrator as bootstrapped, still flagged to change its password."""
    storage.seed_initial_admin()
    return storage.get_user(SEED_ADMIN_ID)


@pytest.fixture
def admin(storage, seeded_admin) -> User:
    return storage.update_user_password(seeded_admin.id, "admin-1234")


@pytest.fixture
def client(store, assistant, registry):
    app.dependency_overrides[get_key_value_store] = lambda: store
    app.dependency_overrides[get_assistant] = lambda: assistant
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_session_pacing_seconds] = lambda: 0.0
    yield TestClient(app)
    app.dependency_overrides.clear()
