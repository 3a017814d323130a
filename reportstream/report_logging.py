"""Helpers for tracing reported values.

Producers can report at very high rates, so tracing is off unless enabled via
environment. This module centralizes:
- redaction of sensitive keys
- length-capped previews of reported values
- env-based gating of value tracing
"""

from __future__ import annotations

import dataclasses
import json
import os

# Field-name fragments that mark a credential inside a reported payload, e.g. a
# progress dict that echoes the request it is tracking.
_SENSITIVE_FIELDS = ("password", "secret", "token", "credential", "authorization")


def should_log_reports() -> bool:
    return os.getenv("REPORTSTREAM_LOG_REPORTS", "").lower() in {"1", "true", "yes"}


def value_preview_max_len() -> int:
    return int(os.getenv("REPORTSTREAM_LOG_VALUE_MAX", "200"))


def sensitive_fields() -> tuple[str, ...]:
    """Default sensitive fragments plus any from REPORTSTREAM_LOG_REDACT (comma separated)."""
    extra = os.getenv("REPORTSTREAM_LOG_REDACT", "")
    return _SENSITIVE_FIELDS + tuple(f.strip().lower() for f in extra.split(",") if f.strip())


def redact_value(obj: object, fields: tuple[str, ...] | None = None) -> object:
    fields = sensitive_fields() if fields is None else fields
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        # Progress messages are often dataclasses; trace them by field.
        obj = {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        out: dict[object, object] = {}
        for k, v in obj.items():
            ks = str(k).lower()
            if any(field in ks for field in fields):
                out[k] = "[REDACTED]"
            else:
                out[k] = redact_value(v, fields)
        return out
    if isinstance(obj, (list, tuple)):
        return [redact_value(x, fields) for x in obj]
    return obj


def format_value_preview(value: object, max_len: int | None = None) -> str:
    """Return a short, human-readable preview of a reported value (redacted if needed)."""

    limit = value_preview_max_len() if max_len is None else max_len

    if isinstance(value, str):
        text = value
    elif isinstance(value, (int, float, bool)) or value is None:
        text = repr(value)
    elif isinstance(value, (dict, list, tuple)) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        text = json.dumps(redact_value(value), ensure_ascii=True, sort_keys=True, default=str)
    else:
        text = repr(value)

    if len(text) > limit:
        return text[:limit] + "..."
    return text
