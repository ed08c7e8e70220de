import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from cfo_insight.config import Settings
from cfo_insight.main import app, get_settings
from cfo_insight.metrics import SNAPSHOT_PATH


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, content=None, error=None):
        self.completions = FakeCompletions(content, error)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai():
    return FakeOpenAI


@pytest.fixture
def raw_snapshot():
    with open(SNAPSHOT_PATH, encoding="utf-8") as handle:
        return json.load(handle)


@pytest.fixture
def use_settings():
    def apply(settings: Settings):
        app.dependency_overrides[get_settings] = lambda: settings

    yield apply
    app.dependency_overrides.clear()


@pytest.fixture
def client(use_settings):
    use_settings(Settings())
    return TestClient(app)
