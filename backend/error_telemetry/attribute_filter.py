"""Attribute exclusion for telemetry payloads.

Attributes are addressed as ``request.headers.<camelName>`` or
``response.headers.<camelName>``. A pattern with a trailing ``*`` matches by
prefix, anything else matches exactly; comparison ignores case.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def header_attribute_name(prefix: str, header: str) -> str:
    """``("request.headers", "Set-Cookie")`` -> ``"request.headers.setCookie"``."""
    parts = [part for part in header.strip().replace("_", "-").split("-") if part]
    if not parts:
        return f"{prefix}."
    camel = parts[0].lower() + "".join(part[:1].upper() + part[1:].lower() for part in parts[1:])
    return f"{prefix}.{camel}"


class AttributeFilter:
    """Decide which attributes may be transmitted."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self._exact: set[str] = set()
        self._prefixes: list[str] = []
        for pattern in patterns:
            pattern = pattern.strip().lower()
            if not pattern:
                continue
            if pattern.endswith("*"):
                self._prefixes.append(pattern[:-1])
            else:
                self._exact.add(pattern)

    def is_excluded(self, name: str) -> bool:
        lowered = name.lower()
        if lowered in self._exact:
            return True
        return any(lowered.startswith(prefix) for prefix in self._prefixes)

    def filter_headers(
        self,
        prefix: str,
        headers: Mapping[str, Any] | Iterable[tuple[str, Any]],
    ) -> dict[str, Any]:
        """Return the headers that survive exclusion, keyed as given."""
        items = headers.items() if isinstance(headers, Mapping) else headers
        return {
            key: value
            for key, value in items
            if not self.is_excluded(header_attribute_name(prefix, key))
        }
