from __future__ import annotations

import logging
from collections.abc import Mapping


def _kv_pairs(fields: Mapping[str, object]) -> str:
    parts: list[str] = []
    for key, value in fields.items():
        if value is None:
            continue
        text = str(value).strip()
        if not text:
            continue
        if " " in text:
            text = repr(text)
        parts.append(f"{key}={text}")
    return " ".join(parts)


def log_event(
    logger: logging.Logger, message: str, *, level: int = logging.INFO, **fields: object
) -> None:
    """Emit a stable, grep-friendly structured log line.

    Protocol servers usually log plain text, so key fields are appended as ``k=v`` tokens.
    Values containing spaces (object keys often do) are quoted.
    """

    suffix = _kv_pairs(fields)
    if suffix:
        logger.log(level, "%s %s", message, suffix)
    else:
        logger.log(level, "%s", message)


def error_log_fields(exc: BaseException) -> dict[str, object]:
    """Extract standard fields from an exception raised by a store call."""

    return {
        "error": type(exc).__name__,
        "code": getattr(exc, "code", None),
        "detail": str(exc),
    }
