"""Runtime configuration for sqldesk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

DEFAULT_ENDPOINT_URL = "http://127.0.0.1:8989/v1"
# Keeps the loading state visible even when the endpoint answers instantly
DEFAULT_MIN_FETCH_DURATION = 0.4
DEFAULT_REQUEST_TIMEOUT = 30.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def _parse_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_str(value: Any) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


def _parse_positive_or_off(parse: Any) -> Any:
    """Wrap a parser so that zero or negative values switch the option off."""

    def parse_value(value: Any) -> Any:
        parsed = parse(value)
        if parsed is None:
            return None
        return parsed if parsed > 0 else _OFF

    return parse_value


def _parse_non_negative(value: Any) -> float | None:
    parsed = _parse_float(value)
    return parsed if parsed is not None and parsed >= 0 else None


_OFF = object()

_PARSERS: dict[str, Any] = {
    "endpoint_url": _parse_str,
    "log_level": _parse_str,
    "request_timeout": _parse_non_negative,
    "min_fetch_duration": _parse_non_negative,
    "strict_ordering": _parse_bool,
    "mock": _parse_bool,
    "preview_row_limit": _parse_positive_or_off(_parse_int),
    "session_ttl": _parse_positive_or_off(_parse_float),
}


@dataclass
class RuntimeConfig:
    """Knobs that shape how the workbench talks to the endpoint."""

    endpoint_url: str = DEFAULT_ENDPOINT_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    min_fetch_duration: float = DEFAULT_MIN_FETCH_DURATION
    # Discard responses that arrive after a newer one for the same slot
    strict_ordering: bool = False
    preview_row_limit: int | None = None
    # Seconds a persisted session stays valid; None keeps it until disconnect
    session_ttl: float | None = None
    log_level: str = "WARNING"
    # Serve the in-memory demo catalog instead of calling the endpoint
    mock: bool = False

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> RuntimeConfig:
        """Build config from settings.json values, then apply SQLDESK_* env overrides.

        Values that fail to parse are ignored and the default is kept.
        Zero or negative ``preview_row_limit``/``session_ttl`` turn the
        option off.
        """
        env = os.environ if environ is None else environ
        config = cls()
        raw_values: dict[str, Any] = {k: v for k, v in settings.items() if k in _PARSERS}
        for name in _PARSERS:
            env_value = env.get(f"SQLDESK_{name.upper()}")
            if env_value is not None and env_value.strip():
                raw_values[name] = env_value.strip()

        for name, raw in raw_values.items():
            value = _PARSERS[name](raw)
            if value is _OFF:
                setattr(config, name, None)
            elif value is not None:
                setattr(config, name, value)
        return config
