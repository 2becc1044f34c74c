from __future__ import annotations

from typing import Any, Dict

import httpx

from hidetok.config import Settings, get_settings
from hidetok.services.provider import HTTPProviderBase, ProviderJob


STATUS_MAP = {
    'starting': 'starting',
    'processing': 'processing',
    'succeeded': 'succeeded',
    'failed': 'failed',
    'canceled': 'canceled',
    'cancelled': 'canceled',
    'aborted': 'canceled',
}


class ReplicateClient(HTTPProviderBase):
    name = 'replicate'

    def __init__(self, settings: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> None:
        settings = settings or get_settings()
        super().__init__(
            settings.replicate_api_token,
            settings.replicate_base_url,
            settings.provider_http_timeout_seconds,
            http_client,
        )
        self.prefer_wait_seconds = settings.replicate_prefer_wait_seconds

    async def create_job(self, model_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        # `owner/name:version` pins a community model version; bare `owner/name` uses the official endpoint.
        model, _, version = model_id.partition(':')
        if version:
            url = f'{self.base_url}/predictions'
            body: Dict[str, Any] = {'version': version, 'input': payload}
        else:
            url = f'{self.base_url}/models/{model}/predictions'
            body = {'input': payload}
        extra_headers = None
        if self.prefer_wait_seconds > 0:
            extra_headers = {'Prefer': f'wait={self.prefer_wait_seconds}'}
        return await self._post(url, body, extra_headers)

    async def get_job(self, poll_url: str) -> Dict[str, Any]:
        return await self._get(poll_url)

    def parse_job(self, record: Dict[str, Any]) -> ProviderJob:
        job_id = str(record.get('id') or '').strip()
        raw_status = str(record.get('status') or '').strip().lower()
        urls = record.get('urls') if isinstance(record.get('urls'), dict) else {}
        poll_url = str(urls.get('get') or '').strip()
        if not poll_url and job_id:
            poll_url = f'{self.base_url}/predictions/{job_id}'
        return ProviderJob(
            job_id=job_id,
            status=STATUS_MAP.get(raw_status, raw_status),
            poll_url=poll_url,
            output=record.get('output'),
            error=self._error_text(record.get('error')),
        )
