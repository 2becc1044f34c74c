from __future__ import annotations

from typing import Any, Dict

import httpx

from hidetok.config import Settings, get_settings
from hidetok.services.provider import HTTPProviderBase, ProviderError, ProviderJob


STATUS_MAP = {
    'created': 'created',
    'pending': 'created',
    'processing': 'processing',
    'completed': 'succeeded',
    'succeeded': 'succeeded',
    'failed': 'failed',
    'canceled': 'canceled',
    'cancelled': 'canceled',
}


class WaveSpeedClient(HTTPProviderBase):
    name = 'wavespeed'

    def __init__(self, settings: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> None:
        settings = settings or get_settings()
        super().__init__(
            settings.wavespeed_api_key,
            settings.wavespeed_base_url,
            settings.provider_http_timeout_seconds,
            http_client,
        )

    async def create_job(self, model_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._post(f'{self.base_url}/{model_id}', payload)

    async def get_job(self, poll_url: str) -> Dict[str, Any]:
        return await self._get(poll_url)

    def _unwrap(self, data: Dict[str, Any]) -> Dict[str, Any]:
        # Responses come as {"code": 200, "message": "...", "data": {...}}.
        code = data.get('code')
        if code not in (None, 200, '200'):
            try:
                status_code = int(code)
            except (TypeError, ValueError):
                status_code = None
            message = str(data.get('message') or 'unknown error')
            raise ProviderError(f'wavespeed error {code}: {message}', status_code=status_code, body=message)
        inner = data.get('data')
        return inner if isinstance(inner, dict) else data

    def parse_job(self, record: Dict[str, Any]) -> ProviderJob:
        job_id = str(record.get('id') or '').strip()
        raw_status = str(record.get('status') or '').strip().lower()
        urls = record.get('urls') if isinstance(record.get('urls'), dict) else {}
        poll_url = str(urls.get('get') or '').strip()
        if not poll_url and job_id:
            poll_url = f'{self.base_url}/predictions/{job_id}/result'
        output = record.get('outputs')
        if output is None:
            output = record.get('output')
        return ProviderJob(
            job_id=job_id,
            status=STATUS_MAP.get(raw_status, raw_status),
            poll_url=poll_url,
            output=output,
            error=self._error_text(record.get('error')),
        )
