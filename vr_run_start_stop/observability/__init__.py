from __future__ import annotations

from .context import bind_context, new_session_id, set_state
from .logging import configure_logging, log_file_path, prepare_log_file

__all__ = [
    "bind_context",
    "configure_logging",
    "log_file_path",
    "new_session_id",
    "prepare_log_file",
    "set_state",
]
