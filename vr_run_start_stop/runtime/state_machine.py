"""The connect -> start scripts -> wait for quit -> stop scripts sequence.

`LifecycleMachine.step()` runs one phase action and returns the next phase, so
every transition can be driven from a test without threads or real sleeps.
`run()` is the worker loop around it.

Transitions:

    AWAITING_CONNECTION      -> AWAITING_CONNECTION (connect failed, or not ready yet)
                             -> RUNNING_START_SCRIPTS
                             -> TERMINATED (cancelled)
    RUNNING_START_SCRIPTS    -> AWAITING_SHUTDOWN_SIGNAL (stop folder has scripts)
                             -> RUNNING_STOP_SCRIPTS
    AWAITING_SHUTDOWN_SIGNAL -> AWAITING_SHUTDOWN_SIGNAL (no quit event yet)
                             -> RUNNING_STOP_SCRIPTS (quit event acknowledged)
                             -> TERMINATED (cancelled, stop scripts skipped)
    RUNNING_STOP_SCRIPTS     -> TERMINATED
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from pathlib import Path
from typing import Callable

from vr_run_start_stop.observability.context import set_state

from .gateway import RuntimeGateway
from .scripts import ScriptRunner


logger = logging.getLogger(__name__)


class LifecyclePhase(str, enum.Enum):
    AWAITING_CONNECTION = "AwaitingConnection"
    RUNNING_START_SCRIPTS = "RunningStartScripts"
    AWAITING_SHUTDOWN_SIGNAL = "AwaitingShutdownSignal"
    RUNNING_STOP_SCRIPTS = "RunningStopScripts"
    TERMINATED = "Terminated"


class LifecycleMachine:
    def __init__(
        self,
        *,
        gateway: RuntimeGateway,
        runner: ScriptRunner,
        start_folder: str | Path,
        stop_folder: str | Path,
        retry_interval_s: float = 1.0,
        poll_interval_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        on_terminated: Callable[[], None] | None = None,
    ) -> None:
        self._gateway = gateway
        self._runner = runner
        self._start_folder = Path(start_folder)
        self._stop_folder = Path(stop_folder)
        self._retry_interval_s = float(retry_interval_s)
        self._poll_interval_s = float(poll_interval_s)
        self._sleep = sleep
        self._on_terminated = on_terminated

        self._ready = threading.Event()
        self._cancel = threading.Event()

        self._phase = LifecyclePhase.AWAITING_CONNECTION
        self._connected = False
        self._stop_scripts_ran = False

    @property
    def phase(self) -> LifecyclePhase:
        return self._phase

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def stop_scripts_ran(self) -> bool:
        return self._stop_scripts_ran

    def mark_ready(self) -> None:
        """Allow the machine to act on a connection (first-run notice dismissed)."""

        self._ready.set()

    def request_cancel(self) -> None:
        """Ask the worker to exit at its next checkpoint. Never undone."""

        self._cancel.set()

    def step(self) -> LifecyclePhase:
        handler = {
            LifecyclePhase.AWAITING_CONNECTION: self._await_connection,
            LifecyclePhase.RUNNING_START_SCRIPTS: self._run_start_scripts,
            LifecyclePhase.AWAITING_SHUTDOWN_SIGNAL: self._await_shutdown_signal,
            LifecyclePhase.RUNNING_STOP_SCRIPTS: self._run_stop_scripts,
        }.get(self._phase)
        if handler is None:
            return self._phase

        nxt = handler()
        if nxt is not self._phase:
            logger.debug("phase_transition", extra={"from": self._phase.value, "to": nxt.value})
            self._phase = nxt
            set_state(nxt.value)
        return nxt

    def run(self) -> None:
        set_state(self._phase.value)
        try:
            while self._phase is not LifecyclePhase.TERMINATED:
                self.step()
        finally:
            # Only reachable without TERMINATED if a collaborator raised.
            self._release()
            logger.info("Application exiting")
            if self._on_terminated is not None:
                self._on_terminated()

    def start_in_background(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name="lifecycle-worker", daemon=True)
        thread.start()
        return thread

    def _release(self) -> None:
        if self._connected:
            self._gateway.disconnect()
            self._connected = False

    def _await_connection(self) -> LifecyclePhase:
        if self._cancel.is_set():
            self._release()
            return LifecyclePhase.TERMINATED

        if not self._connected:
            outcome = self._gateway.connect()
            if not outcome.ok:
                self._sleep(self._retry_interval_s)
                return LifecyclePhase.AWAITING_CONNECTION
            self._connected = True

        if not self._ready.is_set():
            self._sleep(self._poll_interval_s)
            return LifecyclePhase.AWAITING_CONNECTION
        return LifecyclePhase.RUNNING_START_SCRIPTS

    def _run_start_scripts(self) -> LifecyclePhase:
        self._runner.run_all(self._start_folder)
        if self._runner.has_scripts(self._stop_folder):
            logger.info("wait for the shutdown of SteamVR to run additional scripts on exit.")
            return LifecyclePhase.AWAITING_SHUTDOWN_SIGNAL
        return LifecyclePhase.RUNNING_STOP_SCRIPTS

    def _await_shutdown_signal(self) -> LifecyclePhase:
        if self._cancel.is_set():
            self._release()
            return LifecyclePhase.TERMINATED

        quit_seen = False
        while (event := self._gateway.poll_event()) is not None:
            if event.is_quit and not quit_seen:
                self._gateway.acknowledge_shutdown()
                quit_seen = True
        if quit_seen:
            logger.info("SteamVR is shutting down")
            return LifecyclePhase.RUNNING_STOP_SCRIPTS

        self._sleep(self._poll_interval_s)
        return LifecyclePhase.AWAITING_SHUTDOWN_SIGNAL

    def _run_stop_scripts(self) -> LifecyclePhase:
        # Stop scripts must not depend on the runtime still being around.
        self._release()
        if self._cancel.is_set():
            logger.info("Exit requested, skipping stop scripts")
            return LifecyclePhase.TERMINATED
        self._runner.run_all(self._stop_folder)
        self._stop_scripts_ran = True
        return LifecyclePhase.TERMINATED
