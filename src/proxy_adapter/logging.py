"""Logging helpers with redaction.

Standard output carries the protocol stream, so every handler configured
here writes to standard error.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from typing import Any, Dict


_SENSITIVE_KEYS = re.compile(r"(token|secret|api[_-]?key|password)", re.IGNORECASE)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def redact_payload(payload: Any) -> Any:
    if not isinstance(payload, dict):
        return payload
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        if _SENSITIVE_KEYS.search(str(key)):
            redacted[key] = "***REDACTED***"
        elif isinstance(value, dict):
            redacted[key] = redact_payload(value)
        else:
            redacted[key] = value
    return redacted


def preview(value: Any, limit: int = 200) -> str:
    """Compact JSON rendering of ``value`` cut to ``limit`` characters for log lines."""
    try:
        text = json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
