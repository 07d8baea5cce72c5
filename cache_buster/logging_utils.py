from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar
from typing import Any, Optional

_TRUTHY = {"1", "true", "yes", "on"}
_EXTRA_KEYS = ("run_id", "path", "outcome", "files")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        data: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        # Attach build-run fields
        rid = get_run_id()
        if rid and not hasattr(record, "run_id"):
            data["run_id"] = rid
        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                data[key] = getattr(record, key)
        return json.dumps(data, ensure_ascii=False, default=str)


def configure_json_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    # Remove other handlers to avoid duplicate logs
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)


def maybe_enable_json_logging(enabled: Optional[bool] = None) -> bool:
    if enabled is None:
        enabled = (os.environ.get("CACHE_BUSTER_JSON_LOGS") or "").strip().lower() in _TRUTHY
    if enabled:
        configure_json_logging()
    return enabled


# Build-run context helpers
_RUN_ID: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def set_run_id(run_id: Optional[str]) -> None:
    _RUN_ID.set(run_id)


def get_run_id() -> Optional[str]:
    return _RUN_ID.get()
