from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


class StructuredLogger:
    """Prints one JSON object per event; events below ``level`` are dropped."""

    def __init__(self, level: str = "info") -> None:
        if level.lower() not in _LEVELS:
            raise ValueError(f"unknown log level: {level}")
        self._threshold = _LEVELS[level.lower()]

    def debug(self, message: str, **fields: Any) -> None:
        self._emit("debug", message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit("info", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit("warning", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit("error", message, fields)

    def _emit(self, level: str, message: str, fields: dict[str, Any]) -> None:
        if _LEVELS[level] < self._threshold:
            return
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
            "fields": fields,
        }
        print(json.dumps(payload, sort_keys=True, default=str, ensure_ascii=False), flush=True)
