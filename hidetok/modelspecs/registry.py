from __future__ import annotations

from typing import Dict, List

from hidetok.config import Settings
from hidetok.modelspecs.avatar_portrait import AVATAR_PORTRAIT
from hidetok.modelspecs.base import ModelSpec
from hidetok.modelspecs.face_swap import FACE_SWAP
from hidetok.modelspecs.head_swap import HEAD_SWAP


MODEL_SPECS: Dict[str, ModelSpec] = {
    AVATAR_PORTRAIT.key: AVATAR_PORTRAIT,
    FACE_SWAP.key: FACE_SWAP,
    HEAD_SWAP.key: HEAD_SWAP,
}


def list_models() -> List[ModelSpec]:
    return list(MODEL_SPECS.values())


def get_model(key: str) -> ModelSpec | None:
    return MODEL_SPECS.get(key)


def build_registry(settings: Settings) -> Dict[str, ModelSpec]:
    """Apply per call-site polling overrides; a spec whose submit backoff plus polling outgrows its host timeout fails here."""
    overrides = settings.poll_budgets()
    unknown = sorted(set(overrides) - set(MODEL_SPECS))
    if unknown:
        raise ValueError(f'Poll budget overrides for unknown models: {", ".join(unknown)}')
    # Worst case: every submit attempt but the last is rate limited at the clamp.
    backoff = (settings.submit_max_attempts - 1) * settings.rate_limit_max_retry_seconds
    registry: Dict[str, ModelSpec] = {}
    for key, spec in MODEL_SPECS.items():
        if key in overrides:
            interval, attempts = overrides[key]
            spec = spec.with_budget(interval, attempts)
        spec.check_host_timeout(backoff)
        registry[key] = spec
    return registry
