"""Logging setup.

Two sinks hang off the root logger:
- stderr, one JSON object per record (extra fields + context fields)
- the operator-facing log file, `[YYYY-MM-DD HH:MM:SS.mmm] message` per line

The log file is truncated once per process, by `prepare_log_file()`, which also
reports whether it existed before (first-run detection).
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from vr_run_start_stop.config.errors import ConfigError

from .context import snapshot


_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}

_log_file: Path | None = None


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter suitable for structured logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(snapshot())

        # Capture non-standard fields attached via `extra={...}`.
        for k, v in record.__dict__.items():
            if k in _RESERVED_ATTRS or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                payload[k] = v
            except TypeError:
                payload[k] = repr(v)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


class LineFormatter(logging.Formatter):
    """`[2024-01-31 23:59:59.123] message`, local time.

    Multi-line output (tracebacks, multi-line messages) gets the same stamp on
    every line, so each line of the file starts with a timestamp.
    """

    def __init__(self) -> None:
        super().__init__(fmt="[%(asctime)s] %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        ts = datetime.fromtimestamp(record.created)
        return f"{ts:%Y-%m-%d %H:%M:%S}.{int(record.msecs):03d}"

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        first, *rest = super().format(record).splitlines() or [""]
        stamp = f"[{record.asctime}] "
        return "\n".join([first, *(stamp + line for line in rest)])


def prepare_log_file(path: str | Path) -> bool:
    """Truncate the log file and return whether it existed beforehand."""

    p = Path(path)
    existed = p.is_file()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("", encoding="utf-8")
    return existed


def configure_logging(*, level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Configure root logging.

    Safe to call multiple times: existing handlers are replaced.
    """

    global _log_file

    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    console = logging.StreamHandler(stream=sys.stderr)
    console.setFormatter(JsonFormatter())
    root.addHandler(console)

    if log_file is None:
        _log_file = None
        return

    _log_file = Path(log_file)
    file_handler = logging.FileHandler(_log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(LineFormatter())
    root.addHandler(file_handler)


def log_file_path() -> Path:
    """Return the configured log file.

    Raises:
        ConfigError: If logging was never configured with a file.
    """

    if _log_file is None:
        raise ConfigError("log file path not set")
    return _log_file
