from __future__ import annotations

import logging
from typing import Any, Mapping

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=_FORMAT)


def format_log_context(context: Mapping[str, Any]) -> str:
    """Return a stable log-friendly ``key=value`` string; empty values render as ``-``."""
    parts: list[str] = []
    for key, value in (context or {}).items():
        if value in (None, ""):
            value = "-"
        parts.append(f"{key}={value}")
    return " ".join(parts)


__all__ = ["setup_logging", "format_log_context"]
