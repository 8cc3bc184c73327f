"""Find and fire operator scripts.

Launches are fire-and-forget: `run_all` returns once every launch has been
issued and never waits on, or reads from, a child process.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Callable


logger = logging.getLogger(__name__)

Launcher = Callable[[Path], Any]


def find_scripts(folder: str | Path, pattern: str) -> list[Path]:
    """Files directly inside `folder` whose name matches `pattern`.

    Matching is case-insensitive (`A.CMD` matches `*.cmd`). Order is whatever
    the directory listing yields.
    """

    needle = pattern.lower()
    out: list[Path] = []
    with os.scandir(folder) as it:
        for entry in it:
            if entry.is_file() and fnmatch.fnmatchcase(entry.name.lower(), needle):
                out.append(Path(entry.path))
    return out


def launch_detached(path: Path) -> subprocess.Popen:
    """Run `path` through the host shell without waiting for it."""

    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if os.name == "nt":
        kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW | subprocess.CREATE_NEW_PROCESS_GROUP
        args: list[str] = [os.environ.get("COMSPEC", "cmd.exe"), "/C", str(path)]
    else:
        kwargs["start_new_session"] = True
        args = ["/bin/sh", str(path)]
    return subprocess.Popen(args, **kwargs)  # noqa: S603


class ScriptRunner:
    def __init__(self, *, pattern: str = "*.cmd", launcher: Launcher = launch_detached) -> None:
        self._pattern = pattern
        self._launcher = launcher

    @property
    def pattern(self) -> str:
        return self._pattern

    def has_scripts(self, folder: str | Path) -> bool:
        folder = Path(folder)
        try:
            folder.mkdir(parents=True, exist_ok=True)
            return bool(find_scripts(folder, self._pattern))
        except OSError as e:
            logger.error("Error: Could not load scripts from %s: %s", folder, e)
            return False

    def run_all(self, folder: str | Path) -> int:
        """Launch every matching script in `folder`; return how many launches were issued."""

        folder = Path(folder)
        try:
            folder.mkdir(parents=True, exist_ok=True)
            files = find_scripts(folder, self._pattern)
        except OSError as e:
            logger.error("Error: Could not load scripts from %s: %s", folder, e)
            return 0

        logger.info("Found: %d script(s) in %s", len(files), folder, extra={"folder": str(folder)})
        launched = 0
        for path in files:
            logger.info("Executing: %s", path)
            try:
                self._launcher(path.resolve())
            except Exception as e:  # noqa: BLE001
                logger.error("Error: Could not launch %s: %s", path, e)
                continue
            launched += 1

        if not files:
            logger.info("Did not find any %s files to execute in %s", self._pattern, folder)
        return launched
