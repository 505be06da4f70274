from __future__ import annotations

import pytest

from fixtures import FakeOpenAIFactory

from quizgen.core import ai
from quizgen.core.ai import load_client


def test_load_client_requires_openai_dependency(monkeypatch):
    monkeypatch.setattr(ai, "OpenAI", None)

    with pytest.raises(RuntimeError) as exc:
        load_client({"OPENAI_API_KEY": "k"})
    assert "openai" in str(exc.value).lower()


def test_load_client_requires_api_key(monkeypatch):
    monkeypatch.setattr(ai, "OpenAI", FakeOpenAIFactory())

    with pytest.raises(RuntimeError) as exc:
        load_client({"OPENAI_API_KEY": "   "})
    assert "OPENAI_API_KEY" in str(exc.value)


def test_load_client_passes_key(monkeypatch):
    factory = FakeOpenAIFactory()
    monkeypatch.setattr(ai, "OpenAI", factory)

    client = load_client({"OPENAI_API_KEY": "test-key"})

    assert client is factory.last
    assert factory.last.init_kwargs == {"api_key": "test-key"}


def test_load_client_reads_process_env_and_dotenv(monkeypatch):
    factory = FakeOpenAIFactory()
    loaded = []
    monkeypatch.setattr(ai, "OpenAI", factory)
    monkeypatch.setattr(ai, "load_dotenv", lambda: loaded.append(True))
    monkeypatch.setenv("OPENAI_API_KEY", "env-key")

    load_client()

    assert loaded == [True]
    assert factory.last.init_kwargs == {"api_key": "env-key"}
