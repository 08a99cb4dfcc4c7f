from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from error_telemetry.config import TRACE_LEVEL, Settings, validate_production_settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("trace", TRACE_LEVEL),
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
    ],
)
def test_log_level_maps_to_logging_levels(level: str, expected: int) -> None:
    assert _settings(LOG_LEVEL=level).log_level_number == expected


def test_unknown_log_level_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(LOG_LEVEL="verbose")


def test_attribute_exclusions_keep_order_and_drop_blanks() -> None:
    settings = _settings(TELEMETRY_ATTRIBUTES_EXCLUDE=" request.headers.cookie, ,response.headers.x* ,")
    assert settings.attributes_exclude_list == ["request.headers.cookie", "response.headers.x*"]


def test_default_exclusions_cover_credentials() -> None:
    patterns = _settings().attributes_exclude_list
    assert "request.headers.cookie" in patterns
    assert "request.headers.authorization" in patterns
    assert "response.headers.setCookie*" in patterns


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_NAME", "billing-api")
    monkeypatch.setenv("TELEMETRY_DSN", "https://key@collector.example/1")
    monkeypatch.setenv("TELEMETRY_DISTRIBUTED_TRACING_ENABLED", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = _settings()

    assert settings.APP_NAME == "billing-api"
    assert settings.telemetry_dsn == "https://key@collector.example/1"
    assert settings.TELEMETRY_DISTRIBUTED_TRACING_ENABLED is False
    assert settings.log_level_number == logging.DEBUG


def test_dsn_is_kept_out_of_settings_repr() -> None:
    settings = _settings(TELEMETRY_DSN="https://topsecret@collector.example/1")

    assert "topsecret" not in repr(settings)
    assert settings.TELEMETRY_DSN.get_secret_value() == "https://topsecret@collector.example/1"


def test_blank_dsn_counts_as_missing() -> None:
    settings = _settings(TELEMETRY_DSN="")

    assert settings.telemetry_dsn is None
    assert settings.telemetry_active is False


def test_settings_are_immutable() -> None:
    settings = _settings()
    with pytest.raises(ValidationError):
        settings.APP_NAME = "changed"


def test_telemetry_active_requires_flag_and_dsn() -> None:
    assert _settings(TELEMETRY_DSN="https://key@collector.example/1").telemetry_active is True
    assert _settings(TELEMETRY_DSN=None).telemetry_active is False
    assert _settings(TELEMETRY_ENABLED=False, TELEMETRY_DSN="https://key@collector.example/1").telemetry_active is False


def test_production_requires_dsn_when_telemetry_enabled() -> None:
    with pytest.raises(RuntimeError, match="TELEMETRY_DSN"):
        validate_production_settings(_settings(ENV="production", TELEMETRY_DSN=None))


def test_production_rejects_diagnostics() -> None:
    with pytest.raises(RuntimeError, match="DIAGNOSTICS_ENABLED"):
        validate_production_settings(
            _settings(ENV="production", TELEMETRY_ENABLED=False, DIAGNOSTICS_ENABLED=True)
        )


def test_development_settings_pass_validation() -> None:
    validate_production_settings(_settings(ENV="development", TELEMETRY_DSN=None, DIAGNOSTICS_ENABLED=True))
    validate_production_settings(_settings(ENV="production", TELEMETRY_DSN="https://key@collector.example/1"))
