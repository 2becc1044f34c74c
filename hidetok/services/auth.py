from __future__ import annotations

import base64
import hmac
import time
from dataclasses import dataclass

from hidetok.errors import ErrorCode, GenerationError


@dataclass(frozen=True)
class CallerIdentity:
    uid: str
    issued_at: int


def compute_signature(uid: str, issued_at: int, secret: str) -> str:
    message = f'{uid}.{issued_at}'
    digest = hmac.new(secret.encode('utf-8'), message.encode('utf-8'), 'sha256').digest()
    return base64.urlsafe_b64encode(digest).decode('utf-8').rstrip('=')


def issue_token(uid: str, secret: str, issued_at: int | None = None) -> str:
    ts = int(time.time()) if issued_at is None else issued_at
    return f'{uid}.{ts}.{compute_signature(uid, ts, secret)}'


class TokenVerifier:
    """Checks ``uid.issued_at.signature`` bearer tokens signed with a shared secret."""

    def __init__(self, secret: str, max_age_seconds: int, clock=time.time) -> None:
        self.secret = secret.strip()
        self.max_age_seconds = max_age_seconds
        self._clock = clock

    def verify(self, authorization: str | None) -> CallerIdentity:
        scheme, _, token = (authorization or '').strip().partition(' ')
        if scheme.lower() != 'bearer' or not token.strip():
            raise GenerationError(ErrorCode.UNAUTHENTICATED, 'Must be authenticated')
        if not self.secret:
            raise GenerationError(ErrorCode.FAILED_PRECONDITION, 'Caller authentication is not configured')

        parts = token.strip().rsplit('.', 2)
        if len(parts) != 3 or not parts[0]:
            raise GenerationError(ErrorCode.UNAUTHENTICATED, 'Malformed identity token')
        uid, issued_raw, signature = parts
        try:
            issued_at = int(issued_raw)
        except ValueError:
            raise GenerationError(ErrorCode.UNAUTHENTICATED, 'Malformed identity token') from None

        expected = compute_signature(uid, issued_at, self.secret)
        if not hmac.compare_digest(expected, signature):
            raise GenerationError(ErrorCode.UNAUTHENTICATED, 'Invalid identity token')
        age = int(self._clock()) - issued_at
        if age > self.max_age_seconds or age < -60:
            raise GenerationError(ErrorCode.UNAUTHENTICATED, 'Identity token expired')
        return CallerIdentity(uid=uid, issued_at=issued_at)
