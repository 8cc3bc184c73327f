"""Process-facing shells: the tray icon and a console fallback.

Both only ever call `on_exit` (a cancellation request) and get `close()`d by
the lifecycle worker once it has terminated.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable


logger = logging.getLogger(__name__)

APP_TITLE = "VR run at Start/Stop"


def _draw_icon(image_mod: Any, draw_mod: Any, size: int = 64) -> Any:
    image = image_mod.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = draw_mod.Draw(image)
    draw.ellipse((4, 4, size - 4, size - 4), fill=(46, 134, 222, 255))
    # play / stop glyphs
    draw.polygon([(18, 20), (18, 44), (32, 32)], fill=(255, 255, 255, 255))
    draw.rectangle((36, 22, 46, 42), fill=(255, 255, 255, 255))
    return image


class TrayShell:
    """System tray icon with a single Exit item. `run()` blocks the calling thread."""

    def __init__(self, *, on_exit: Callable[[], None], title: str = APP_TITLE) -> None:
        self._on_exit = on_exit
        self._title = title
        self._lock = threading.Lock()
        self._icon: Any | None = None
        self._closed = False

    def run(self) -> None:
        try:
            import pystray  # type: ignore
            from PIL import Image, ImageDraw
        except Exception as e:  # pragma: no cover
            raise RuntimeError("Missing dependency 'pystray'/'Pillow'. Install them with: pip install pystray Pillow") from e

        icon = pystray.Icon(
            "vr-run-start-stop",
            _draw_icon(Image, ImageDraw),
            self._title,
            pystray.Menu(pystray.MenuItem("Exit", self._menu_exit)),
        )
        with self._lock:
            if self._closed:
                return
            self._icon = icon
        icon.run(self._on_setup)

    def close(self) -> None:
        """Stop the icon loop. Safe from any thread, before or after `run()`."""

        with self._lock:
            self._closed = True
            icon = self._icon
        if icon is None:
            return
        try:
            icon.stop()
        except Exception as e:  # noqa: BLE001
            logger.warning("Could not stop tray icon: %s", e)

    def _on_setup(self, icon: Any) -> None:
        icon.visible = True
        with self._lock:
            closed = self._closed
        if closed:
            icon.stop()

    def _menu_exit(self, icon: Any, item: Any) -> None:
        _ = (icon, item)
        logger.info("Exit requested from tray")
        self._on_exit()


class HeadlessShell:
    """Console stand-in for the tray: Ctrl+C requests the exit."""

    def __init__(self, *, on_exit: Callable[[], None], tick_s: float = 0.5) -> None:
        self._on_exit = on_exit
        self._tick_s = tick_s
        self._done = threading.Event()

    def run(self) -> None:
        try:
            # Short waits keep Ctrl+C responsive on Windows.
            while not self._done.wait(self._tick_s):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, exiting")
            self._on_exit()
            while not self._done.wait(self._tick_s):
                pass

    def close(self) -> None:
        self._done.set()
