"""Shared fixtures: scripted provider HTTP and a sleep that never waits."""

from typing import Any, Dict, List, Optional

import httpx
import pytest

from hidetok.config import Settings
from hidetok.modelspecs.base import ModelSpec
from hidetok.services.replicate_client import ReplicateClient
from hidetok.services.wavespeed_client import WaveSpeedClient


REPLICATE_BASE = "https://replicate.test/v1"
WAVESPEED_BASE = "https://wavespeed.test/api/v3"


class ScriptedTransport:
    """Replays queued responses in order and records every request."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.requests: List[httpx.Request] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def by_method(self, method: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method]


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def json_response(status_code: int, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    return httpx.Response(status_code, json=body, headers=headers)


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "REPLICATE_API_TOKEN": "r8_test",
        "REPLICATE_BASE_URL": REPLICATE_BASE,
        "WAVESPEED_API_KEY": "ws_test",
        "WAVESPEED_BASE_URL": WAVESPEED_BASE,
        "AUTH_TOKEN_SECRET": "test-secret",
        "POLL_BUDGET_OVERRIDES": "",
    }
    values.update(overrides)
    return Settings(**values)


def make_spec(**overrides: Any) -> ModelSpec:
    values: Dict[str, Any] = {
        "key": "test_model",
        "provider": "replicate",
        "model_id": "owner/model",
        "model_type": "text_to_image",
        "display_name": "Test",
        "poll_interval": 2,
        "max_poll_attempts": 30,
        "host_timeout_seconds": 120,
    }
    values.update(overrides)
    return ModelSpec(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def replicate_transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def wavespeed_transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def replicate_client(settings, replicate_transport) -> ReplicateClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(replicate_transport))
    return ReplicateClient(settings, http_client=http)


@pytest.fixture
def wavespeed_client(settings, wavespeed_transport) -> WaveSpeedClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(wavespeed_transport))
    return WaveSpeedClient(settings, http_client=http)
