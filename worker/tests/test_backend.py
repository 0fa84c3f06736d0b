import pytest

from smartnotes.config import Settings
from smartnotes.errors import BackendUnavailable
from smartnotes.services import backend as svc
from smartnotes.services.backend import (
    ChatCompletionsBackend,
    OllamaBackend,
    backend_diagnostics,
    build_backend,
)

from conftest import FakeBackend


def test_ollama_posts_non_streaming_generate(monkeypatch):
    seen = {}

    def fake_post(url, headers, data, timeout=300):
        seen.update(url=url, data=data, timeout=timeout)
        return {"response": "hello", "done": True}

    monkeypatch.setattr(svc, "_http_post", fake_post)
    out = OllamaBackend("http://localhost:11434/", timeout=12).generate("llama3", "say hi")
    assert out == "hello"
    assert seen["url"] == "http://localhost:11434/api/generate"
    assert seen["data"] == {"model": "llama3", "prompt": "say hi", "stream": False}
    assert seen["timeout"] == 12


def test_ollama_error_payload_raises(monkeypatch):
    monkeypatch.setattr(svc, "_http_post", lambda *a, **k: {"error": "model not found"})
    with pytest.raises(BackendUnavailable, match="model not found"):
        OllamaBackend("http://localhost:11434").generate("nope", "x")


def test_chat_completions_requires_key(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    backend = ChatCompletionsBackend("groq", "https://api.groq.com/openai/v1", "GROQ_API_KEY")
    assert backend.configured is False
    with pytest.raises(BackendUnavailable):
        backend.generate("m", "x")


def test_chat_completions_reads_first_choice(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    seen = {}

    def fake_post(url, headers, data, timeout=300):
        seen.update(url=url, headers=headers)
        return {"choices": [{"message": {"content": "notes"}}]}

    monkeypatch.setattr(svc, "_http_post", fake_post)
    out = ChatCompletionsBackend("openai", "https://api.openai.com/v1", "OPENAI_API_KEY").generate("gpt", "x")
    assert out == "notes"
    assert seen["url"] == "https://api.openai.com/v1/chat/completions"
    assert seen["headers"]["Authorization"] == "Bearer sk-test"


def test_build_backend_by_provider():
    assert isinstance(build_backend(Settings(backend_provider="ollama")), OllamaBackend)
    assert build_backend(Settings(backend_provider="groq")).name == "groq"
    assert build_backend(Settings(backend_provider="OpenAI")).name == "openai"
    assert isinstance(build_backend(Settings(backend_provider="mystery")), OllamaBackend)


def test_diagnostics_probe_ok():
    info = backend_diagnostics(FakeBackend(other="OK"), "m")
    assert info["provider"] == "fake"
    assert info["probe_ok"] is True
    assert info["probe_sample"] == "OK"


def test_diagnostics_reports_failure():
    info = backend_diagnostics(FakeBackend(other=BackendUnavailable("connection refused")), "m")
    assert info["probe_ok"] is False
    assert "connection refused" in info["error"]
