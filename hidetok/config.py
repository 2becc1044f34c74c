from __future__ import annotations

from functools import lru_cache
from typing import Dict, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    # Replicate
    replicate_api_token: str = Field('', alias='REPLICATE_API_TOKEN')
    replicate_base_url: str = Field('https://api.replicate.com/v1', alias='REPLICATE_BASE_URL')
    replicate_prefer_wait_seconds: int = Field(0, alias='REPLICATE_PREFER_WAIT_SECONDS')

    # WaveSpeed
    wavespeed_api_key: str = Field('', alias='WAVESPEED_API_KEY')
    wavespeed_base_url: str = Field('https://api.wavespeed.ai/api/v3', alias='WAVESPEED_BASE_URL')

    # Provider HTTP
    provider_http_timeout_seconds: float = Field(60.0, alias='PROVIDER_HTTP_TIMEOUT_SECONDS')

    # Submission / polling
    submit_max_attempts: int = Field(3, alias='SUBMIT_MAX_ATTEMPTS')
    rate_limit_default_retry_seconds: float = Field(15.0, alias='RATE_LIMIT_DEFAULT_RETRY_SECONDS')
    rate_limit_max_retry_seconds: float = Field(15.0, alias='RATE_LIMIT_MAX_RETRY_SECONDS')
    poll_budget_overrides: str = Field('', alias='POLL_BUDGET_OVERRIDES')

    # Callers
    auth_token_secret: str = Field('', alias='AUTH_TOKEN_SECRET')
    auth_token_max_age_seconds: int = Field(3600, alias='AUTH_TOKEN_MAX_AGE_SECONDS')
    max_prompt_length: int = Field(2000, alias='MAX_PROMPT_LENGTH')

    # Web
    web_host: str = Field('127.0.0.1', alias='WEB_HOST')
    web_port: int = Field(8080, alias='WEB_PORT')

    # Logging
    log_level: str = Field('INFO', alias='LOG_LEVEL')

    def poll_budgets(self) -> Dict[str, Tuple[float, int]]:
        """Parse ``key=interval:attempts`` pairs, e.g. ``face_swap=2:40,head_swap=3:150``."""
        budgets: Dict[str, Tuple[float, int]] = {}
        for chunk in self.poll_budget_overrides.split(','):
            piece = chunk.strip()
            if not piece:
                continue
            key, _, value = piece.partition('=')
            interval, _, attempts = value.partition(':')
            try:
                budgets[key.strip()] = (float(interval), int(attempts))
            except ValueError as exc:
                raise ValueError(f'Invalid poll budget override: {piece!r}') from exc
        return budgets


@lru_cache

def get_settings() -> Settings:
    return Settings()
