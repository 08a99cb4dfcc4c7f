"""Errors raised by route code that already know their HTTP outcome."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """An HTTP-aware failure.

    The interceptor answers with ``http_status`` and ``message`` unchanged.
    ``code`` and ``details`` only travel to the log and telemetry channels
    with the exception itself; they never reach the response body.
    """

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    @property
    def status_code(self) -> int:
        return self.http_status

    def __str__(self) -> str:
        return self.message
