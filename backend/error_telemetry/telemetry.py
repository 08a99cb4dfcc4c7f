"""Error forwarding to the remote monitoring collector."""
from __future__ import annotations

from typing import Any, Protocol

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from .attribute_filter import AttributeFilter
from .config import Settings
from .logger import AppLogger


class TelemetryClient(Protocol):
    def notice_error(self, error: object) -> None:
        ...


class NullTelemetryClient:
    """Telemetry disabled: errors are only logged locally."""

    def notice_error(self, error: object) -> None:
        return None


class SentryTelemetryClient:
    """Hands errors to the Sentry SDK, which ships them on its background transport."""

    def notice_error(self, error: object) -> None:
        if isinstance(error, BaseException):
            sentry_sdk.capture_exception(error)
        else:
            sentry_sdk.capture_message(repr(error), level="error")

    def flush(self, timeout: float = 2.0) -> None:
        sentry_sdk.flush(timeout=timeout)


def strip_excluded_attributes(event: dict[str, Any], attribute_filter: AttributeFilter) -> dict[str, Any]:
    """Remove excluded header attributes from an outgoing event."""
    request = event.get("request")
    if isinstance(request, dict):
        headers = request.get("headers")
        if headers:
            request["headers"] = attribute_filter.filter_headers("request.headers", headers)
        if "cookies" in request and attribute_filter.is_excluded("request.headers.cookie"):
            del request["cookies"]

    response = (event.get("contexts") or {}).get("response")
    if isinstance(response, dict) and response.get("headers"):
        response["headers"] = attribute_filter.filter_headers("response.headers", response["headers"])
    return event


def init_telemetry(settings: Settings, app_logger: AppLogger | None = None) -> TelemetryClient:
    """Initialise the collector client once per process."""
    app_logger = app_logger or AppLogger()
    if not settings.TELEMETRY_ENABLED:
        app_logger.log("Telemetry disabled (TELEMETRY_ENABLED=false)")
        return NullTelemetryClient()
    if settings.telemetry_dsn is None:
        app_logger.warn("Telemetry enabled but TELEMETRY_DSN is not set; errors will only be logged")
        return NullTelemetryClient()

    attribute_filter = AttributeFilter(settings.attributes_exclude_list)

    def before_send(event, hint):
        return strip_excluded_attributes(event, attribute_filter)

    tracing = settings.TELEMETRY_DISTRIBUTED_TRACING_ENABLED
    tracing_options: dict[str, Any] = {"traces_sample_rate": settings.TELEMETRY_TRACES_SAMPLE_RATE}
    if not tracing:
        tracing_options = {"traces_sample_rate": None, "trace_propagation_targets": []}

    sentry_sdk.init(
        dsn=settings.telemetry_dsn,
        environment=settings.ENV,
        debug=settings.LOG_LEVEL == "trace",
        send_default_pii=False,
        # The interceptor is the only reporter; SDK-side capture would double-report.
        default_integrations=False,
        auto_enabling_integrations=False,
        integrations=[
            StarletteIntegration(failed_request_status_codes=set()),
            FastApiIntegration(failed_request_status_codes=set()),
        ],
        before_send=before_send,
        **tracing_options,
    )
    sentry_sdk.set_tag("app_name", settings.APP_NAME)
    app_logger.log(
        f"Telemetry enabled for {settings.APP_NAME} "
        f"(distributed tracing {'on' if tracing else 'off'})"
    )
    return SentryTelemetryClient()
