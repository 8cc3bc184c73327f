"""Presentation: tray icon, console fallback and the first-run notice."""

from __future__ import annotations

from .notice import first_run_message, show_first_run_notice
from .tray import APP_TITLE, HeadlessShell, TrayShell

__all__ = [
    "APP_TITLE",
    "HeadlessShell",
    "TrayShell",
    "first_run_message",
    "show_first_run_notice",
]
