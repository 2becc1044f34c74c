from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Union

from hidetok.errors import ErrorCode, GenerationError
from hidetok.modelspecs.base import ModelSpec
from hidetok.services.provider import ProviderClient, ProviderError, ProviderJob
from hidetok.utils.logging import get_logger
from hidetok.utils.text import clamp_text, short_url


logger = get_logger('poller')

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_SUBMIT_ATTEMPTS = 3
DEFAULT_RETRY_AFTER_SECONDS = 15.0
MAX_RETRY_AFTER_SECONDS = 15.0
NO_OUTPUT_MESSAGE = 'Generation succeeded but returned no output'
GENERIC_FAILURE_MESSAGE = 'Generation failed'


@dataclass(frozen=True)
class ImmediateResult:
    output_url: str
    job_id: str = ''


@dataclass(frozen=True)
class DeferredJob:
    job_id: str
    poll_url: str


SubmitResult = Union[ImmediateResult, DeferredJob]


class AsyncJobPoller:
    """Submit one provider job and drive it to a single terminal outcome.

    Every call is a sequential chain: submit (with 429 backoff), then at most
    ``spec.max_poll_attempts`` rounds of sleep, GET, inspect. Nothing is shared
    between calls besides the injected client, so concurrent calls on one
    poller do not interfere.
    """

    def __init__(
        self,
        client: ProviderClient,
        sleep: Sleep = asyncio.sleep,
        max_submit_attempts: int = DEFAULT_SUBMIT_ATTEMPTS,
        default_retry_after: float = DEFAULT_RETRY_AFTER_SECONDS,
        max_retry_after: float = MAX_RETRY_AFTER_SECONDS,
    ) -> None:
        if max_submit_attempts < 1:
            raise ValueError('max_submit_attempts must be at least 1')
        if max_retry_after < 0:
            raise ValueError('max_retry_after must not be negative')
        self.client = client
        self._sleep = sleep
        self.max_submit_attempts = max_submit_attempts
        self.default_retry_after = default_retry_after
        self.max_retry_after = max_retry_after

    @property
    def submit_backoff_budget(self) -> float:
        """Longest total time submission can spend sleeping between 429s."""
        return (self.max_submit_attempts - 1) * self.max_retry_after

    def _backoff_seconds(self, retry_after: float | None) -> float:
        if retry_after is None:
            return min(self.default_retry_after, self.max_retry_after)
        return min(retry_after, self.max_retry_after)

    async def run(self, spec: ModelSpec, payload: Dict[str, Any]) -> str:
        start = time.monotonic()
        submitted = await self.submit(spec, payload)
        if isinstance(submitted, ImmediateResult):
            url = submitted.output_url
        else:
            url = await self.poll(spec, submitted)
        logger.info(
            'generation_succeeded',
            model=spec.key,
            provider=self.client.name,
            duration_s=round(time.monotonic() - start, 2),
            immediate=isinstance(submitted, ImmediateResult),
        )
        return url

    async def submit(self, spec: ModelSpec, payload: Dict[str, Any]) -> SubmitResult:
        if not self.client.has_credentials():
            logger.error('provider_credentials_missing', provider=self.client.name, model=spec.key)
            raise GenerationError(
                ErrorCode.FAILED_PRECONDITION,
                f'{self.client.name} API token is not configured',
            )

        record = None
        for attempt in range(1, self.max_submit_attempts + 1):
            try:
                record = await self.client.create_job(spec.model_id, payload)
                break
            except ProviderError as exc:
                if not exc.rate_limited:
                    logger.error(
                        'submit_failed',
                        provider=self.client.name,
                        model=spec.key,
                        status_code=exc.status_code,
                        body=clamp_text(exc.body, 300),
                    )
                    raise GenerationError(
                        ErrorCode.INTERNAL,
                        f'Failed to start generation: {exc}',
                        details={'providerStatus': exc.status_code},
                    ) from exc
                if attempt >= self.max_submit_attempts:
                    logger.warning(
                        'submit_rate_limit_exhausted',
                        provider=self.client.name,
                        model=spec.key,
                        attempts=attempt,
                    )
                    raise GenerationError(
                        ErrorCode.RESOURCE_EXHAUSTED,
                        'Provider is rate limiting requests, try again later',
                    ) from exc
                wait_s = self._backoff_seconds(exc.retry_after)
                logger.info(
                    'submit_rate_limited',
                    provider=self.client.name,
                    model=spec.key,
                    attempt=attempt,
                    wait_s=wait_s,
                )
                await self._sleep(wait_s)

        job = self.client.parse_job(record or {})
        return self._classify_submission(spec, job)

    def _classify_submission(self, spec: ModelSpec, job: ProviderJob) -> SubmitResult:
        if job.succeeded:
            return ImmediateResult(self._require_output(spec, job), job.job_id)
        if job.failed:
            self._raise_failed(spec, job)
        if not job.poll_url:
            logger.error('submit_missing_job_handle', provider=self.client.name, model=spec.key, status=job.status)
            raise GenerationError(ErrorCode.INTERNAL, 'Provider did not return a job to poll')
        logger.info(
            'job_submitted',
            provider=self.client.name,
            model=spec.key,
            job_id=job.job_id,
            status=job.status,
        )
        return DeferredJob(job.job_id, job.poll_url)

    async def poll(self, spec: ModelSpec, job: DeferredJob) -> str:
        for attempt in range(1, spec.max_poll_attempts + 1):
            await self._sleep(spec.poll_interval)
            try:
                record = await self.client.get_job(job.poll_url)
            except ProviderError as exc:
                logger.warning(
                    'poll_http_error',
                    provider=self.client.name,
                    job_id=job.job_id,
                    attempt=attempt,
                    status_code=exc.status_code,
                    error=clamp_text(str(exc), 200),
                )
                continue

            state = self.client.parse_job(record)
            if state.succeeded:
                return self._require_output(spec, state)
            if state.failed:
                self._raise_failed(spec, state)
            logger.debug('poll_pending', job_id=job.job_id, attempt=attempt, status=state.status)

        logger.warning(
            'poll_deadline_exceeded',
            provider=self.client.name,
            model=spec.key,
            job_id=job.job_id,
            attempts=spec.max_poll_attempts,
            budget_s=spec.poll_budget_seconds,
        )
        raise GenerationError(
            ErrorCode.DEADLINE_EXCEEDED,
            f'Generation did not finish within {spec.poll_budget_seconds:.0f}s',
            details={'jobId': job.job_id},
        )

    def _require_output(self, spec: ModelSpec, job: ProviderJob) -> str:
        url = job.first_output()
        if not url:
            logger.error('job_missing_output', provider=self.client.name, model=spec.key, job_id=job.job_id)
            raise GenerationError(ErrorCode.INTERNAL, NO_OUTPUT_MESSAGE)
        logger.debug('job_output', job_id=job.job_id, url=short_url(url))
        return url

    def _raise_failed(self, spec: ModelSpec, job: ProviderJob) -> None:
        message = job.error or GENERIC_FAILURE_MESSAGE
        logger.warning(
            'job_failed',
            provider=self.client.name,
            model=spec.key,
            job_id=job.job_id,
            status=job.status,
            error=clamp_text(message, 300),
        )
        raise GenerationError(ErrorCode.INTERNAL, message, details={'jobId': job.job_id})
