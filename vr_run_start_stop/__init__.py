"""Run operator scripts when SteamVR starts and when it shuts down."""

from __future__ import annotations

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
