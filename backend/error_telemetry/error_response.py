"""JSON error body returned for every intercepted exception."""
from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from .interceptor import ClassifiedOutcome


def build_error_response(outcome: ClassifiedOutcome, headers: Mapping[str, str] | None = None) -> JSONResponse:
    """Render a classified outcome as ``{"statusCode": ..., "message": ...}``.

    Only the two fields are emitted; stack traces and exception internals stay
    in the log and telemetry side channels.
    """
    return JSONResponse(
        status_code=outcome.status_code,
        content={
            "statusCode": outcome.status_code,
            "message": outcome.message,
        },
        headers=dict(headers) if headers else None,
    )
