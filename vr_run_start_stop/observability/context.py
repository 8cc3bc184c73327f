from __future__ import annotations

import secrets
from contextvars import ContextVar


# Process-wide: the worker thread starts with an empty context, so a ContextVar
# would not carry the session id across to it.
_session_id: str | None = None
_state: ContextVar[str | None] = ContextVar("state", default=None)


def new_session_id() -> str:
    return secrets.token_hex(12)


def bind_context(*, session_id: str) -> None:
    global _session_id
    _session_id = session_id


def set_state(state: str) -> None:
    """Record the lifecycle phase of the calling thread."""

    _state.set(state)


def snapshot() -> dict[str, object]:
    """Return a snapshot of current observability context for logging."""

    out: dict[str, object] = {}
    if _session_id is not None:
        out["session_id"] = _session_id
    if (v := _state.get()) is not None:
        out["state"] = v
    return out
