from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional, Protocol

import httpx

from hidetok.utils.text import clamp_text


SUCCEEDED = 'succeeded'
FAILED_STATUSES = {'failed', 'canceled'}
PENDING_STATUSES = {'created', 'starting', 'processing'}


class ProviderError(Exception):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
        body: str = '',
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after
        self.body = body

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


@dataclass(frozen=True)
class ProviderJob:
    job_id: str
    status: str
    poll_url: str = ''
    output: Any = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status in FAILED_STATUSES

    def first_output(self) -> Optional[str]:
        value = self.output
        if isinstance(value, list):
            for item in value:
                if isinstance(item, str) and item.strip():
                    return item.strip()
            return None
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


class ProviderClient(Protocol):
    name: str

    def has_credentials(self) -> bool:
        ...

    async def create_job(self, model_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def get_job(self, poll_url: str) -> Dict[str, Any]:
        ...

    def parse_job(self, record: Dict[str, Any]) -> ProviderJob:
        ...

    async def close(self) -> None:
        ...


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Read a ``Retry-After`` header given either as seconds or as an HTTP date.

    Returns ``None`` for anything unusable, including ``inf`` and ``nan``.
    """
    raw = (value or '').strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
        if not math.isfinite(seconds):
            return None
    except ValueError:
        try:
            when = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - (now or datetime.now(timezone.utc))).total_seconds()
    return max(seconds, 0.0)


class HTTPProviderBase:
    """Bearer-authenticated JSON transport shared by the provider clients."""

    name = 'provider'

    def __init__(self, api_key: str, base_url: str, timeout: float, http_client: httpx.AsyncClient | None = None) -> None:
        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip('/')
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def has_credentials(self) -> bool:
        return bool(self.api_key)

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {'Authorization': f'Bearer {self.api_key}'}
        if json_body:
            headers['Content-Type'] = 'application/json'
        return headers

    async def _post(self, url: str, body: Dict[str, Any], extra_headers: Dict[str, str] | None = None) -> Dict[str, Any]:
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)
        try:
            resp = await self._client.post(url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise ProviderError(f'{self.name} request to {url} failed: {exc}') from exc
        return self._decode(resp, 'create')

    async def _get(self, url: str) -> Dict[str, Any]:
        try:
            resp = await self._client.get(url, headers=self._headers(json_body=False))
        except httpx.HTTPError as exc:
            raise ProviderError(f'{self.name} request to {url} failed: {exc}') from exc
        return self._decode(resp, 'get')

    def _decode(self, resp: httpx.Response, op: str) -> Dict[str, Any]:
        if not resp.is_success:
            body = clamp_text(resp.text or '', 500)
            raise ProviderError(
                f'{self.name} {op} error {resp.status_code}: {body}',
                status_code=resp.status_code,
                retry_after=parse_retry_after(resp.headers.get('retry-after')),
                body=body,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(
                f'{self.name} {op} returned invalid JSON',
                status_code=resp.status_code,
                body=clamp_text(resp.text or '', 500),
            ) from exc
        if not isinstance(data, dict):
            raise ProviderError(f'{self.name} {op} returned non-object payload', status_code=resp.status_code)
        return self._unwrap(data)

    def _unwrap(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    @staticmethod
    def _error_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, str):
            cleaned = value.strip()
            return cleaned or None
        if isinstance(value, dict):
            detail = value.get('message') or value.get('detail') or value.get('error')
            if detail:
                return str(detail)
        return str(value) or None
