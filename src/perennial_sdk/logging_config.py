"""
Structured logging configuration for the Perennial SDK.

Provides JSON-formatted structured logging with:
- Key material never logged (private keys, mnemonics, signatures, API keys)
- RPC URLs reduced to scheme and host (provider keys live in URL paths)
- Calldata and signed price updates redacted

Usage:
    from perennial_sdk.logging_config import setup_logging, get_logger

    setup_logging()  # Call once at startup
    logger = get_logger(__name__)
    logger.info("message", extra={"market": market})
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

_URL_PATTERN = re.compile(r"(https?://[^\s\"'<>]+)")
_SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # key=value style secrets
    (re.compile(r"\b(private[_-]?key|mnemonic|seed|api[_-]?key|apikey)[=:]\s*['\"]?[\w\-]+['\"]?", re.I), "[SECRET]"),
    # Bearer tokens
    (re.compile(r"\b(bearer|token)[=:\s]+['\"]?[\w\-\.]+['\"]?", re.I), "[TOKEN]"),
    # Authorization headers
    (re.compile(r"(authorization|auth)[=:\s]+['\"]?[\w\-\.\s]+['\"]?", re.I), "[AUTH]"),
    # Raw 65-byte signatures
    (re.compile(r"\b0x[0-9a-fA-F]{130}\b"), "[SIGNATURE]"),
]

# Fields that should never appear in logs
BLOCKED_FIELDS: frozenset[str] = frozenset(
    {
        "private_key",
        "privatekey",
        "mnemonic",
        "seed",
        "signature",
        "api_key",
        "secret",
        "token",
        "password",
        "authorization",
        "bearer",
        "credential",
    }
)

# Fields replaced wholesale; "rpc_url"/"url" are normalized instead
REDACTED_FIELDS: dict[str, str] = {
    "data": "[CALLDATA]",
    "calldata": "[CALLDATA]",
    "update_data": "[UPDATE_DATA]",
    "body": "[BODY]",
    "headers": "[HEADERS]",
    "params": "[PARAMS]",
}

_URL_FIELDS: frozenset[str] = frozenset({"url", "rpc_url", "pyth_url"})

_RECORD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


def _normalize_url(url: str) -> str:
    """Keep scheme and host only; paths and queries may embed provider keys."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        return "[URL]"
    host = parts.hostname
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}"


def _sanitize_url_in_text(match: re.Match[str]) -> str:
    return _normalize_url(match.group(1))


def _sanitize_text(text: str) -> str:
    """Sanitize free-form text (msg, exc) to remove sensitive data."""
    if not text:
        return text

    result = _URL_PATTERN.sub(_sanitize_url_in_text, text)

    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)

    return result


def _filter_log_record(record: dict[str, Any], *, _depth: int = 0) -> dict[str, Any]:
    """Filter sensitive fields from a log record.

    Recursively filters nested dicts up to depth 3.
    """
    if _depth > 3:
        return {"_truncated": "max depth exceeded"}

    filtered: dict[str, Any] = {}

    for key, value in record.items():
        key_lower = key.lower()

        if key_lower in BLOCKED_FIELDS:
            continue
        # Partial match, e.g. "signer_private_key"
        if any(blocked in key_lower for blocked in BLOCKED_FIELDS):
            continue

        if key_lower in _URL_FIELDS:
            filtered[key] = _normalize_url(value) if isinstance(value, str) else "[URL]"
            continue

        if key_lower in REDACTED_FIELDS:
            filtered[key] = REDACTED_FIELDS[key_lower]
            continue

        if isinstance(value, (int, float, bool, type(None))):
            filtered[key] = value
        elif isinstance(value, str):
            filtered[key] = _sanitize_text(value)
        elif isinstance(value, (bytes, bytearray)):
            filtered[key] = f"[bytes:{len(value)}]"
        elif isinstance(value, (list, tuple)):
            # Cap list size to prevent huge log lines
            if len(value) <= 10:
                filtered[key] = list(value)
            else:
                filtered[key] = f"[list:{len(value)} items]"
        elif isinstance(value, dict):
            filtered[key] = _filter_log_record(value, _depth=_depth + 1)
        else:
            filtered[key] = _sanitize_text(str(value))

    return filtered


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Output format:
    {"ts":"2024-01-01T00:00:00.000Z","level":"INFO","logger":"module","msg":"...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_dict: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": _sanitize_text(record.getMessage()),
        }

        if record.levelno >= logging.WARNING:
            log_dict["file"] = record.filename
            log_dict["line"] = record.lineno

        if record.exc_info:
            log_dict["exc"] = _sanitize_text(self.formatException(record.exc_info))

        extra = _extra_fields(record)
        if extra:
            log_dict.update(_filter_log_record(extra))

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for development/testing."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname:8s} {record.name}: {_sanitize_text(record.getMessage())}"

        extra = _extra_fields(record)
        if extra:
            filtered = _filter_log_record(extra)
            if filtered:
                extra_str = " ".join(f"{k}={v}" for k, v in filtered.items())
                base = f"{base} | {extra_str}"

        return base


def setup_logging(
    *,
    level: int | str = logging.INFO,
    json_format: bool = True,
    stream: Any = None,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (default INFO).
        json_format: Use JSON formatter (default True for production).
        stream: Output stream (default stderr).
    """
    if stream is None:
        stream = sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter() if json_format else SimpleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Configured Logger instance.
    """
    return logging.getLogger(name)
