"""Deliberate-failure endpoints for checking the error path end to end."""
from fastapi import APIRouter

from ..domain_errors import DomainError

router = APIRouter(prefix="/diagnostics", tags=["diagnostics"])


class _SilentError(Exception):
    """Raised without a message."""


@router.get("/errors/{kind}")
def raise_error(kind: str):
    """Raise the requested failure; never returns normally."""
    if kind == "http":
        raise DomainError(code="DIAGNOSTIC_NOT_FOUND", http_status=404, message="Not Found")
    if kind == "runtime":
        raise RuntimeError("divide by zero")
    if kind == "empty":
        raise _SilentError()
    raise DomainError(
        code="DIAGNOSTIC_UNKNOWN_KIND",
        http_status=400,
        message=f"Unknown diagnostic error kind: {kind}",
        details={"kind": kind},
    )
