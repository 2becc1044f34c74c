from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    FAILED_PRECONDITION = 'failed-precondition'
    INVALID_ARGUMENT = 'invalid-argument'
    UNAUTHENTICATED = 'unauthenticated'
    RESOURCE_EXHAUSTED = 'resource-exhausted'
    INTERNAL = 'internal'
    DEADLINE_EXCEEDED = 'deadline-exceeded'

    @property
    def wire_status(self) -> str:
        # Callable protocol spells codes as upper snake case.
        return self.value.upper().replace('-', '_')

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS: Dict[ErrorCode, int] = {
    ErrorCode.FAILED_PRECONDITION: 400,
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.RESOURCE_EXHAUSTED: 429,
    ErrorCode.INTERNAL: 500,
    ErrorCode.DEADLINE_EXCEEDED: 504,
}


class GenerationError(Exception):
    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        """Whether a user may reasonably try the same request again later."""
        return self.code in (ErrorCode.RESOURCE_EXHAUSTED, ErrorCode.DEADLINE_EXCEEDED)

    def to_wire(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {'status': self.code.wire_status, 'message': self.message}
        if self.details:
            error['details'] = self.details
        return {'error': error}

    def __repr__(self) -> str:
        return f'GenerationError({self.code.value!r}, {self.message!r})'
