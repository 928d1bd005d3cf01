"""Fixtures for API tests: an app wired to a scripted Gemini backend."""

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import orjson
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from studio_proxy.api.app import create_app
from studio_proxy.backend.gemini import API_KEY_HEADER, GeminiClient
from studio_proxy.config.settings import Settings
from studio_proxy.rotation.pool import CredentialPool
from studio_proxy.rotation.rotator import CredentialRotator


TEST_KEYS = ("AIzaSy-test-key-0001", "AIzaSy-test-key-0002", "AIzaSy-test-key-0003")

Reply = Callable[[httpx.Request], httpx.Response]


class FakeGemini:
    """Scripted Gemini backend keyed by API key.

    Records every request so tests can check which key was used and what
    was sent. Keys without a scripted reply get a 500 response.
    """

    def __init__(self) -> None:
        self.replies: dict[str, Reply] = {}
        self.requests: list[httpx.Request] = []

    @property
    def keys_used(self) -> list[str]:
        return [request.headers[API_KEY_HEADER] for request in self.requests]

    def last_body(self) -> dict[str, Any]:
        body: dict[str, Any] = orjson.loads(self.requests[-1].content)
        return body

    def reply_text(self, key: str, text: str) -> None:
        self.replies[key] = lambda request: httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]}
        )

    def reply_audio(self, key: str, data: str) -> None:
        part = {"inlineData": {"mimeType": "audio/pcm", "data": data}}
        self.replies[key] = lambda request: httpx.Response(
            200, json={"candidates": [{"content": {"parts": [part]}}]}
        )

    def reply_image(self, key: str, data: str) -> None:
        part = {"inlineData": {"mimeType": "image/png", "data": data}}
        self.replies[key] = lambda request: httpx.Response(
            200, json={"candidates": [{"content": {"parts": [part]}}]}
        )

    def reply_operation(self, key: str, name: str) -> None:
        self.replies[key] = lambda request: httpx.Response(
            200, json={"name": name, "done": False}
        )

    def reply_error(self, key: str, code: int, status: str, message: str) -> None:
        error = {"code": code, "message": message, "status": status}
        self.replies[key] = lambda request: httpx.Response(
            code, json={"error": error}
        )

    def reply_quota(self, key: str) -> None:
        self.reply_error(key, 429, "RESOURCE_EXHAUSTED", "Quota exceeded")

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.get(request.headers.get(API_KEY_HEADER, ""))
        if reply is None:
            return httpx.Response(500, text="unexpected key")
        return reply(request)


@pytest.fixture
def keys() -> tuple[str, ...]:
    return TEST_KEYS


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def settings() -> Settings:
    k1, k2, k3 = TEST_KEYS
    return Settings(credentials={"cle_1": k1, "cle_2": k2, "cle_3": k3})


@pytest.fixture
def make_app(settings: Settings, gemini: FakeGemini) -> Callable[..., FastAPI]:
    """Build an app whose rotator and backend are injected before startup."""

    def _make(credentials: list[str] | None = None) -> FastAPI:
        app = create_app(settings)
        pool = CredentialPool.from_candidates(
            TEST_KEYS if credentials is None else credentials
        )
        app.state.rotator = CredentialRotator(pool)
        app.state.backend = GeminiClient(
            base_url="https://gemini.test",
            transport=httpx.MockTransport(gemini.handle),
        )
        return app

    return _make


@pytest.fixture
def client(make_app: Callable[..., FastAPI]) -> Iterator[TestClient]:
    with TestClient(make_app()) as test_client:
        yield test_client
