from __future__ import annotations

import json
import logging
import os
import socket
import ssl
import time
from typing import Any, Dict, Optional, Protocol
from urllib import request, error

from ..config import Settings
from ..errors import BackendUnavailable

logger = logging.getLogger("smartnotes.backend")


class TextGenerationBackend(Protocol):
    """Anything that turns (model, prompt) into text or raises BackendUnavailable."""

    name: str

    def generate(self, model: str, prompt: str) -> str: ...


def _http_post(url: str, headers: Dict[str, str], data: Dict[str, Any], timeout: int = 300) -> Dict[str, Any]:
    body = json.dumps(data).encode("utf-8")
    # Ensure we send a UA
    hdrs = {"User-Agent": "smartnotes-worker/1.0 python-urllib", "Content-Type": "application/json", **headers}
    req = request.Request(url, data=body, headers=hdrs, method="POST")
    # Be tolerant of environments with custom SSL; allow opt-out verify
    if os.getenv("SMARTNOTES_SSL_NO_VERIFY"):
        ctx = ssl._create_unverified_context()  # type: ignore[attr-defined]
    else:
        ctx = ssl.create_default_context()
    try:
        with request.urlopen(req, context=ctx, timeout=timeout) as resp:
            raw = resp.read()
    except error.HTTPError as e:
        try:
            payload = e.read().decode("utf-8")
        except Exception:
            payload = str(e)
        raise BackendUnavailable(f"HTTP {e.code}: {payload[:500]}") from e
    except (error.URLError, socket.timeout, ConnectionError) as e:
        raise BackendUnavailable(f"request to {url} failed: {e}") from e
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise BackendUnavailable(f"non-JSON response from {url}") from e


class OllamaBackend:
    """Ollama ``/api/generate`` without streaming."""

    name = "ollama"

    def __init__(self, base_url: str, timeout: int = 300) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def generate(self, model: str, prompt: str) -> str:
        logger.info("sending request to ollama", extra={"model": model, "prompt_chars": len(prompt)})
        start = time.perf_counter()
        res = _http_post(
            f"{self.base_url}/api/generate",
            headers={},
            data={"model": model, "prompt": prompt, "stream": False},
            timeout=self.timeout,
        )
        text = res.get("response")
        if not isinstance(text, str):
            raise BackendUnavailable(f"ollama response has no text: {res.get('error') or 'missing field'}")
        logger.info(
            "ollama call finished",
            extra={"model": model, "response_chars": len(text), "duration_ms": int((time.perf_counter() - start) * 1000)},
        )
        return text


class ChatCompletionsBackend:
    """OpenAI-compatible ``/chat/completions`` (OpenAI, Groq)."""

    def __init__(self, name: str, base_url: str, api_key_env: str, timeout: int = 300, temperature: float = 0.2) -> None:
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.api_key_env = api_key_env
        self.timeout = timeout
        self.temperature = temperature

    @property
    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, model: str, prompt: str) -> str:
        api_key = self.api_key
        if not api_key:
            raise BackendUnavailable(f"{self.api_key_env} not set")
        logger.info(f"sending request to {self.name}", extra={"model": model, "prompt_chars": len(prompt)})
        res = _http_post(
            f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {api_key}"},
            data={
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
            },
            timeout=self.timeout,
        )
        try:
            content = res["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise BackendUnavailable(f"unexpected {self.name} response format: {e}") from e
        return content or ""


def build_backend(settings: Settings) -> TextGenerationBackend:
    provider = (settings.backend_provider or "ollama").strip().lower()
    if provider == "openai":
        return ChatCompletionsBackend("openai", settings.openai_api_base, "OPENAI_API_KEY", timeout=settings.backend_timeout_s)
    if provider == "groq":
        return ChatCompletionsBackend("groq", settings.groq_api_base, "GROQ_API_KEY", timeout=settings.backend_timeout_s)
    if provider != "ollama":
        logger.warning(f"unknown backend provider '{provider}', using ollama")
    return OllamaBackend(settings.ollama_base_url, timeout=settings.backend_timeout_s)


def backend_diagnostics(backend: TextGenerationBackend, model: str) -> Dict[str, Any]:
    """Provider configuration plus the result of a tiny probe call."""
    info: Dict[str, Any] = {
        "provider": getattr(backend, "name", type(backend).__name__),
        "model": model,
        "configured": bool(getattr(backend, "configured", True)),
        "probe_ok": False,
    }
    try:
        content = backend.generate(model, "Respond with OK only.").strip()
    except BackendUnavailable as e:
        info["error"] = str(e)
        return info
    if content:
        info["probe_ok"] = True
        info["probe_sample"] = content[:80]
    else:
        info["error"] = f"{info['provider']} probe returned empty response"
    return info
