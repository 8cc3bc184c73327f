from __future__ import annotations

import logging
from pathlib import Path


logger = logging.getLogger(__name__)


def first_run_message(*, pattern: str, start_folder: str | Path, stop_folder: str | Path, log_file: str | Path) -> str:
    return (
        "========================\n"
        " First Run Instructions \n"
        "========================\n"
        "This app automatically sets itself to auto-launch with SteamVR.\n"
        f"When it runs it will in turn run all {pattern} files in the {start_folder} folder.\n"
        f"If there are {pattern} files in {stop_folder} it will stay and run those on shutdown.\n"
        f"This message is only shown once, to see it again delete {log_file}.\n"
        "Press [OK] in this window to continue execution.\n"
        "If there are shutdown scripts the app will remain open in the system tray."
    )


def show_first_run_notice(message: str, *, title: str = "VrRunStartStop") -> bool:
    """Show a blocking information box; return False if no dialog could be shown."""

    try:
        import tkinter as tk
        from tkinter import messagebox

        root = tk.Tk()
    except Exception as e:  # noqa: BLE001
        logger.warning("Could not show first run notice: %s", e)
        return False

    try:
        root.withdraw()
        messagebox.showinfo(title, message, parent=root)
    except Exception as e:  # noqa: BLE001
        logger.warning("Could not show first run notice: %s", e)
        return False
    finally:
        try:
            root.destroy()
        except Exception as e:  # noqa: BLE001
            logger.debug("tk root destroy failed: %s", e)
    return True
