"""Shared fixtures: scripted backends and an app client with no network access."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from livetrack.dependencies import get_assistant, get_pipeline
from livetrack.errors import BackendError
from livetrack.main import app
from livetrack.services.backends.base import TrackingBackend
from livetrack.services.pipeline import ResolutionPipeline


class ScriptedBackend(TrackingBackend):
    """Replays canned completions (or raises canned errors) and records every call."""

    def __init__(self, name="primary", replies=(), configured=True):
        super().__init__(api_key="test-key" if configured else None, model="test-model")
        self.name = name
        self.replies = list(replies)
        self.calls = []

    def query(self, prompt, *, timeout, **kwargs):
        self.calls.append({"prompt": prompt, "timeout": timeout, **kwargs})
        if not self.replies:
            raise BackendError(self.name, "no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_backend():
    return ScriptedBackend


@pytest.fixture
def client():
    app.dependency_overrides[get_pipeline] = lambda: ResolutionPipeline([])
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def override_pipeline():
    def _override(pipeline):
        app.dependency_overrides[get_pipeline] = lambda: pipeline
    return _override


@pytest.fixture
def override_assistant():
    def _override(assistant):
        app.dependency_overrides[get_assistant] = lambda: assistant
    return _override
