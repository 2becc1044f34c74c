from __future__ import annotations

from typing import Any, Dict, Mapping

from hidetok.config import Settings, get_settings
from hidetok.errors import ErrorCode, GenerationError
from hidetok.modelspecs.base import GenerationRequest, ModelSpec
from hidetok.services.poller import AsyncJobPoller, Sleep
from hidetok.services.prompts import build_portrait_prompt
from hidetok.services.provider import ProviderClient
from hidetok.utils.logging import get_logger
from hidetok.utils.text import clamp_text, is_http_url, short_url


logger = get_logger("generation")

SQUARE = "1:1"
PORTRAIT = "3:4"


def create_pollers(settings: Settings, clients: Mapping[str, ProviderClient], sleep: Sleep | None = None) -> Dict[str, AsyncJobPoller]:
    pollers: Dict[str, AsyncJobPoller] = {}
    for name, client in clients.items():
        kwargs: Dict[str, Any] = {
            "max_submit_attempts": settings.submit_max_attempts,
            "default_retry_after": settings.rate_limit_default_retry_seconds,
            "max_retry_after": settings.rate_limit_max_retry_seconds,
        }
        if sleep is not None:
            kwargs["sleep"] = sleep
        pollers[name] = AsyncJobPoller(client, **kwargs)
    return pollers


def _require_string(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise GenerationError(ErrorCode.INVALID_ARGUMENT, f"{field} is required")
    return value.strip()


def _require_image_url(data: Mapping[str, Any], field: str) -> str:
    value = _require_string(data, field)
    if not is_http_url(value):
        raise GenerationError(ErrorCode.INVALID_ARGUMENT, f"{field} must be an http(s) URL")
    return value


def _require_mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise GenerationError(ErrorCode.INVALID_ARGUMENT, "Request data must be an object")
    return data


class GenerationService:
    def __init__(
        self,
        pollers: Mapping[str, AsyncJobPoller],
        registry: Mapping[str, ModelSpec],
        settings: Settings | None = None,
    ) -> None:
        self.pollers = pollers
        self.registry = registry
        self.settings = settings or get_settings()

    def _spec(self, key: str) -> ModelSpec:
        spec = self.registry.get(key)
        if spec is None:
            raise GenerationError(ErrorCode.FAILED_PRECONDITION, f"Model {key} is not configured")
        return spec

    def _poller(self, spec: ModelSpec) -> AsyncJobPoller:
        poller = self.pollers.get(spec.provider)
        if poller is None:
            raise GenerationError(ErrorCode.FAILED_PRECONDITION, f"Provider {spec.provider} is not configured")
        return poller

    def _portrait_prompt(self, data: Mapping[str, Any]) -> str:
        prompt = data.get("prompt")
        selections = data.get("selections")
        if isinstance(selections, Mapping) and selections:
            text = build_portrait_prompt(selections)
        elif prompt is not None:
            text = _require_string(data, "prompt")
        else:
            raise GenerationError(ErrorCode.INVALID_ARGUMENT, "Either prompt or selections required")
        return clamp_text(text, self.settings.max_prompt_length)

    async def generate_portrait(self, data: Any, aspect_ratio: str = SQUARE) -> Dict[str, str]:
        data = _require_mapping(data)
        prompt = self._portrait_prompt(data)
        request = GenerationRequest(prompt=prompt, options={"aspect_ratio": aspect_ratio})
        return await self._run(self._spec("avatar_portrait"), request)

    async def face_swap(self, data: Any) -> Dict[str, str]:
        return await self._swap("face_swap", data)

    async def head_swap(self, data: Any) -> Dict[str, str]:
        return await self._swap("head_swap", data)

    async def _swap(self, key: str, data: Any) -> Dict[str, str]:
        data = _require_mapping(data)
        request = GenerationRequest(
            source_image_url=_require_image_url(data, "sourceImageUrl"),
            swap_image_url=_require_image_url(data, "swapFaceUrl"),
        )
        return await self._run(self._spec(key), request)

    async def _run(self, spec: ModelSpec, request: GenerationRequest) -> Dict[str, str]:
        poller = self._poller(spec)
        payload = spec.build_input(request)
        logger.info(
            "generation_started",
            model=spec.key,
            provider=spec.provider,
            prompt=clamp_text(request.prompt, 120) if request.prompt else None,
            source=short_url(request.source_image_url) if spec.is_swap else None,
            poll_budget_s=spec.poll_budget_seconds,
        )
        url = await poller.run(spec, payload)
        return {"imageUrl": url}
