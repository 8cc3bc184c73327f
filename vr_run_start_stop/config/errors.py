from __future__ import annotations


class VrRunError(Exception):
    """Base exception for this project."""


class ConfigError(VrRunError):
    """Raised when configuration is invalid, incomplete, or used before it is set."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
