"""Connection to the SteamVR runtime.

Every call reports failure as a value or a log line; nothing here raises into
the lifecycle worker. The `openvr` binding is imported on first connect so the
rest of the package (and its tests) work on machines without SteamVR.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol


logger = logging.getLogger(__name__)

# openvr.VREvent_Quit
VREVENT_QUIT = 700


@dataclass(frozen=True, slots=True)
class ConnectOutcome:
    ok: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RegistrationOutcome:
    already_installed: bool
    manifest_error: str | None = None
    autolaunch_error: str | None = None


@dataclass(frozen=True, slots=True)
class RuntimeEvent:
    event_type: int

    @property
    def is_quit(self) -> bool:
        return self.event_type == VREVENT_QUIT


class RuntimeGateway(Protocol):
    def connect(self) -> ConnectOutcome: ...

    def poll_event(self) -> RuntimeEvent | None: ...

    def acknowledge_shutdown(self) -> None: ...

    def disconnect(self) -> None: ...


def _describe(exc: BaseException) -> str:
    text = str(exc).strip()
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


class OpenVRGateway:
    """RuntimeGateway backed by pyopenvr, attached as an overlay application."""

    def __init__(self, *, app_key: str, manifest_path: str | Path, vr: Any | None = None) -> None:
        self._app_key = app_key
        self._manifest_path = Path(manifest_path)
        self._vr = vr
        self._system: Any | None = None
        self._event: Any | None = None

    @property
    def connected(self) -> bool:
        return self._system is not None

    def _module(self) -> Any:
        if self._vr is None:
            import openvr  # type: ignore

            self._vr = openvr
        return self._vr

    def connect(self) -> ConnectOutcome:
        if self._system is not None:
            return ConnectOutcome(ok=True)

        try:
            vr = self._module()
            system = vr.init(vr.VRApplication_Overlay)
        except Exception as e:  # noqa: BLE001
            error = _describe(e)
            logger.warning("Error: OpenVR init failed: %s", error, extra={"error": error})
            return ConnectOutcome(ok=False, error=error)

        self._system = system
        self._event = vr.VREvent_t()
        logger.info("OpenVR init success")
        self.register()
        return ConnectOutcome(ok=True)

    def register(self) -> RegistrationOutcome:
        """Install the app manifest and turn on auto-launch, once.

        The two calls fail independently; neither failure affects the connection.
        """

        vr = self._module()
        try:
            apps = vr.VRApplications()
            if apps.isApplicationInstalled(self._app_key):
                return RegistrationOutcome(already_installed=True)
        except Exception as e:  # noqa: BLE001
            error = _describe(e)
            logger.warning("Error: Could not query app registration: %s", error)
            return RegistrationOutcome(already_installed=False, manifest_error=error, autolaunch_error=error)

        manifest_error: str | None = None
        try:
            apps.addApplicationManifest(str(self._manifest_path.resolve()), False)
            logger.info("Successfully installed app manifest")
        except Exception as e:  # noqa: BLE001
            manifest_error = _describe(e)
            logger.warning("Error: Failed to add app manifest: %s", manifest_error)

        autolaunch_error: str | None = None
        try:
            apps.setApplicationAutoLaunch(self._app_key, True)
            logger.info("Successfully set app to auto launch")
        except Exception as e:  # noqa: BLE001
            autolaunch_error = _describe(e)
            logger.warning("Error: Failed to turn on auto launch: %s", autolaunch_error)

        return RegistrationOutcome(
            already_installed=False,
            manifest_error=manifest_error,
            autolaunch_error=autolaunch_error,
        )

    def poll_event(self) -> RuntimeEvent | None:
        if self._system is None:
            return None
        try:
            if not self._system.pollNextEvent(self._event):
                return None
        except Exception as e:  # noqa: BLE001
            logger.warning("Could not get new events: %s", _describe(e))
            return None
        return RuntimeEvent(event_type=int(self._event.eventType))

    def acknowledge_shutdown(self) -> None:
        if self._system is None:
            return
        try:
            self._system.acknowledgeQuit_Exiting()
        except Exception as e:  # noqa: BLE001
            logger.warning("Error: Could not acknowledge quit: %s", _describe(e))

    def disconnect(self) -> None:
        if self._system is None:
            return
        self._system = None
        self._event = None
        try:
            self._module().shutdown()
        except Exception as e:  # noqa: BLE001
            logger.warning("Error: OpenVR shutdown failed: %s", _describe(e))
