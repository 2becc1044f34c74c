from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List


# Headroom kept between the polling budget and the host's hard timeout, so the
# submit round-trip and a deadline-exceeded reply still fit.
HOST_TIMEOUT_MARGIN_SECONDS = 10.0


@dataclass
class OptionValue:
    value: str
    label: str


@dataclass
class OptionSpec:
    key: str
    label: str
    values: List[OptionValue]
    default: str


@dataclass
class GenerationRequest:
    prompt: str = ''
    source_image_url: str = ''
    swap_image_url: str = ''
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelSpec:
    key: str
    provider: str
    model_id: str
    model_type: str
    display_name: str
    poll_interval: float
    max_poll_attempts: int
    host_timeout_seconds: float
    options: List[OptionSpec] = field(default_factory=list)
    prompt_key: str = 'prompt'
    source_image_key: str = 'input_image'
    swap_image_key: str = 'swap_image'
    extra_input: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f'{self.key}: poll_interval must be positive')
        if self.max_poll_attempts < 1:
            raise ValueError(f'{self.key}: max_poll_attempts must be at least 1')
        self.check_host_timeout()

    @property
    def poll_budget_seconds(self) -> float:
        return self.poll_interval * self.max_poll_attempts

    @property
    def is_swap(self) -> bool:
        return self.model_type == 'swap'

    def check_host_timeout(self, submit_backoff_seconds: float = 0.0) -> None:
        """Raise unless worst-case submit backoff plus polling fits under the host timeout."""
        total = submit_backoff_seconds + self.poll_budget_seconds
        if total + HOST_TIMEOUT_MARGIN_SECONDS > self.host_timeout_seconds:
            raise ValueError(
                f'{self.key}: submit backoff {submit_backoff_seconds:.0f}s plus polling budget '
                f'{self.poll_budget_seconds:.0f}s does not fit under host timeout {self.host_timeout_seconds:.0f}s'
            )

    def with_budget(self, poll_interval: float, max_poll_attempts: int) -> 'ModelSpec':
        return replace(self, poll_interval=poll_interval, max_poll_attempts=max_poll_attempts)

    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        validated: Dict[str, Any] = {}
        for opt in self.options:
            value = options.get(opt.key, opt.default)
            allowed = {v.value for v in opt.values}
            if value not in allowed:
                value = opt.default
            validated[opt.key] = value
        return validated

    def build_input(self, request: GenerationRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra_input)
        if self.is_swap:
            payload[self.source_image_key] = request.source_image_url
            payload[self.swap_image_key] = request.swap_image_url
        else:
            payload[self.prompt_key] = request.prompt
        payload.update(self.validate_options(request.options))
        return payload
