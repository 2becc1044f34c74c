"""Tests for request validation and routing in GenerationService."""

import json

import pytest

from conftest import REPLICATE_BASE, json_response, make_settings
from hidetok.errors import ErrorCode, GenerationError
from hidetok.modelspecs.registry import build_registry
from hidetok.services.generation import PORTRAIT, GenerationService, create_pollers


@pytest.fixture
def service(settings, replicate_client, wavespeed_client, sleep):
    clients = {"replicate": replicate_client, "wavespeed": wavespeed_client}
    return GenerationService(create_pollers(settings, clients, sleep), build_registry(settings), settings)


def succeeded(url="https://x/out.png"):
    return json_response(201, {"id": "p1", "status": "succeeded", "output": url})


class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"prompt": ""},
            {"prompt": "   "},
            {"prompt": 42},
            {"prompt": None, "selections": "tall"},
            {"selections": ["gender"]},
            {"selections": {}},
        ],
    )
    async def test_portrait_requires_prompt(self, service, replicate_transport, data):
        with pytest.raises(GenerationError) as exc_info:
            await service.generate_portrait(data)

        assert exc_info.value.code is ErrorCode.INVALID_ARGUMENT
        assert replicate_transport.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            {"sourceImageUrl": "https://x/a.jpg"},
            {"swapFaceUrl": "https://x/b.jpg"},
            {"sourceImageUrl": 1, "swapFaceUrl": "https://x/b.jpg"},
            {"sourceImageUrl": "file:///etc/passwd", "swapFaceUrl": "https://x/b.jpg"},
        ],
    )
    async def test_swap_requires_both_urls(self, service, replicate_transport, wavespeed_transport, data):
        for call in (service.face_swap, service.head_swap):
            with pytest.raises(GenerationError) as exc_info:
                await call(data)
            assert exc_info.value.code is ErrorCode.INVALID_ARGUMENT

        assert replicate_transport.requests == []
        assert wavespeed_transport.requests == []

    @pytest.mark.asyncio
    async def test_non_object_data(self, service):
        with pytest.raises(GenerationError) as exc_info:
            await service.face_swap("https://x/a.jpg")
        assert exc_info.value.code is ErrorCode.INVALID_ARGUMENT


class TestRouting:

    @pytest.mark.asyncio
    async def test_portrait_sends_prompt_and_aspect_ratio(self, service, replicate_transport):
        replicate_transport.queue(succeeded())

        result = await service.generate_portrait({"prompt": "  a selfie  "}, aspect_ratio=PORTRAIT)

        assert result == {"imageUrl": "https://x/out.png"}
        request = replicate_transport.requests[0]
        assert str(request.url) == f"{REPLICATE_BASE}/models/black-forest-labs/flux-1.1-pro/predictions"
        body = json.loads(request.content)
        assert body["input"]["prompt"] == "a selfie"
        assert body["input"]["aspect_ratio"] == "3:4"

    @pytest.mark.asyncio
    async def test_portrait_from_selections(self, service, replicate_transport):
        replicate_transport.queue(succeeded())

        await service.generate_portrait({"selections": {"gender": "male", "expression": "serious"}})

        body = json.loads(replicate_transport.requests[0].content)
        assert body["input"]["prompt"].startswith("Casual selfie photo of a male")
        assert body["input"]["aspect_ratio"] == "1:1"

    @pytest.mark.asyncio
    async def test_selections_win_over_empty_prompt(self, service, replicate_transport):
        replicate_transport.queue(succeeded(), succeeded())

        await service.generate_portrait({"prompt": "", "selections": {"gender": "female"}})
        await service.generate_portrait({"prompt": "ignored", "selections": {"gender": "female"}})

        for request in replicate_transport.requests:
            assert json.loads(request.content)["input"]["prompt"].startswith("Casual selfie photo of a female")

    @pytest.mark.asyncio
    async def test_empty_selections_fall_back_to_prompt(self, service, replicate_transport):
        replicate_transport.queue(succeeded())

        await service.generate_portrait({"prompt": "a selfie", "selections": {}})

        assert json.loads(replicate_transport.requests[0].content)["input"]["prompt"] == "a selfie"

    @pytest.mark.asyncio
    async def test_long_prompt_is_clamped(self, replicate_transport, replicate_client, wavespeed_client, sleep):
        settings = make_settings(MAX_PROMPT_LENGTH=20)
        clients = {"replicate": replicate_client, "wavespeed": wavespeed_client}
        service = GenerationService(create_pollers(settings, clients, sleep), build_registry(settings), settings)
        replicate_transport.queue(succeeded())

        await service.generate_portrait({"prompt": "x" * 100})

        body = json.loads(replicate_transport.requests[0].content)
        assert len(body["input"]["prompt"]) < 30

    @pytest.mark.asyncio
    async def test_head_swap_goes_to_wavespeed(self, service, replicate_transport, wavespeed_transport):
        data = {"id": "w1", "status": "completed", "outputs": ["https://x/head.jpg"]}
        wavespeed_transport.queue(json_response(200, {"code": 200, "message": "success", "data": data}))

        result = await service.head_swap({"sourceImageUrl": "https://x/a.jpg", "swapFaceUrl": "https://x/b.jpg"})

        assert result == {"imageUrl": "https://x/head.jpg"}
        assert replicate_transport.requests == []

    @pytest.mark.asyncio
    async def test_missing_provider_is_precondition(self, settings, replicate_client, sleep):
        pollers = create_pollers(settings, {"replicate": replicate_client}, sleep)
        service = GenerationService(pollers, build_registry(settings), settings)

        with pytest.raises(GenerationError) as exc_info:
            await service.head_swap({"sourceImageUrl": "https://x/a.jpg", "swapFaceUrl": "https://x/b.jpg"})

        assert exc_info.value.code is ErrorCode.FAILED_PRECONDITION

    def test_pollers_use_configured_submit_policy(self, replicate_client):
        settings = make_settings(SUBMIT_MAX_ATTEMPTS=5, RATE_LIMIT_DEFAULT_RETRY_SECONDS=1.5, RATE_LIMIT_MAX_RETRY_SECONDS=4)

        poller = create_pollers(settings, {"replicate": replicate_client})["replicate"]

        assert poller.max_submit_attempts == 5
        assert poller.default_retry_after == 1.5
        assert poller.max_retry_after == 4
