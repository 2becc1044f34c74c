from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Dict, Mapping

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hidetok.config import Settings, get_settings
from hidetok.errors import ErrorCode, GenerationError
from hidetok.modelspecs.registry import build_registry
from hidetok.services.auth import TokenVerifier
from hidetok.services.generation import PORTRAIT, SQUARE, GenerationService, create_pollers
from hidetok.services.poller import Sleep
from hidetok.services.provider import ProviderClient
from hidetok.services.replicate_client import ReplicateClient
from hidetok.services.wavespeed_client import WaveSpeedClient
from hidetok.utils.logging import get_logger


logger = get_logger("web")

Handler = Callable[[Any], Awaitable[Dict[str, Any]]]


def _error_response(exc: GenerationError) -> JSONResponse:
    return JSONResponse(exc.to_wire(), status_code=exc.code.http_status)


async def _read_callable_data(request: Request) -> Any:
    try:
        body = await request.json()
    except ValueError:
        raise GenerationError(ErrorCode.INVALID_ARGUMENT, "Request body must be JSON") from None
    if not isinstance(body, dict) or "data" not in body:
        raise GenerationError(ErrorCode.INVALID_ARGUMENT, "Request body must contain data")
    return body["data"]


def default_clients(settings: Settings) -> Dict[str, ProviderClient]:
    return {
        ReplicateClient.name: ReplicateClient(settings),
        WaveSpeedClient.name: WaveSpeedClient(settings),
    }


def create_app(
    settings: Settings | None = None,
    clients: Mapping[str, ProviderClient] | None = None,
    sleep: Sleep | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    clients = clients if clients is not None else default_clients(settings)
    registry = build_registry(settings)

    app = FastAPI(title="HideTok Functions")
    app.state.clients = clients
    app.state.verifier = TokenVerifier(settings.auth_token_secret, settings.auth_token_max_age_seconds)
    app.state.generation = GenerationService(create_pollers(settings, clients, sleep), registry, settings)

    @app.on_event("shutdown")
    async def shutdown() -> None:
        for client in app.state.clients.values():
            try:
                await client.close()
            except Exception as exc:
                logger.warning("client_close_failed", provider=client.name, error=str(exc))

    async def call(endpoint: str, request: Request, handler: Handler) -> JSONResponse | Dict[str, Any]:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(endpoint=endpoint)
        start = time.monotonic()
        try:
            identity = app.state.verifier.verify(request.headers.get("authorization"))
            structlog.contextvars.bind_contextvars(uid=identity.uid)
            data = await _read_callable_data(request)
            result = await handler(data)
        except GenerationError as exc:
            logger.warning(
                "callable_failed",
                code=exc.code.value,
                error=exc.message,
                duration_s=round(time.monotonic() - start, 2),
            )
            return _error_response(exc)
        except Exception:
            logger.exception("callable_crashed", duration_s=round(time.monotonic() - start, 2))
            return _error_response(GenerationError(ErrorCode.INTERNAL, "Internal error"))
        logger.info("callable_succeeded", duration_s=round(time.monotonic() - start, 2))
        return {"result": result}

    @app.get("/healthz")
    async def healthz():
        return {
            "ok": True,
            "providers": {name: client.has_credentials() for name, client in app.state.clients.items()},
        }

    @app.post("/generateAvatarPortrait")
    async def generate_avatar_portrait(request: Request):
        service: GenerationService = app.state.generation
        return await call(
            "generateAvatarPortrait",
            request,
            lambda data: service.generate_portrait(data, aspect_ratio=SQUARE),
        )

    @app.post("/generateAvatarPortraitTall")
    async def generate_avatar_portrait_tall(request: Request):
        service: GenerationService = app.state.generation
        return await call(
            "generateAvatarPortraitTall",
            request,
            lambda data: service.generate_portrait(data, aspect_ratio=PORTRAIT),
        )

    @app.post("/faceSwap")
    async def face_swap(request: Request):
        return await call("faceSwap", request, app.state.generation.face_swap)

    @app.post("/headSwap")
    async def head_swap(request: Request):
        return await call("headSwap", request, app.state.generation.head_swap)

    return app
