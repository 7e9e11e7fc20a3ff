# tests/conftest.py

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from tasks_api.auth import create_access_token
from tasks_api.config import Settings, get_settings
from tasks_api.routes import get_now, get_task_store
from tasks_api.schemas import Task, TaskPriority, TaskStatus, UserRole

from .fakes import FakeTaskStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def settings() -> Settings:
    return Settings(jwt_secret="test-secret")


@pytest.fixture()
def store() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture()
def client(settings: Settings, store: FakeTaskStore):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_task_store] = lambda: store
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(settings: Settings):
    """Build an Authorization header for any user id / role."""

    def _headers(user_id: str = "alice", role: UserRole = UserRole.USER) -> dict:
        token = create_access_token(user_id, settings, role=role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


def make_task(
    user_id: str = "alice",
    title: str = "Write report",
    description: str = "",
    due_date: datetime | None = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    status: TaskStatus = TaskStatus.PENDING,
    created_at: datetime = NOW - timedelta(days=1),
) -> Task:
    return Task(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        due_date=due_date,
        priority=priority,
        status=status,
        user_id=user_id,
        created_at=created_at,
        updated_at=created_at,
    )
