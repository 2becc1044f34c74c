from __future__ import annotations

from urllib.parse import urlparse


def clamp_text(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + '...'


def short_url(url: str, max_len: int = 80) -> str:
    return clamp_text(url or '', max_len)


def is_http_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)
