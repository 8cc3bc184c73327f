from __future__ import annotations

import sys
import threading
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from vr_run_start_stop.shell import HeadlessShell, TrayShell, first_run_message, show_first_run_notice


class FakeIcon:
    def __init__(self) -> None:
        self.visible = False
        self.stopped = 0

    def stop(self) -> None:
        self.stopped += 1


def test_first_run_message_names_folders_and_log() -> None:
    msg = first_run_message(
        pattern="*.cmd",
        start_folder=Path("start"),
        stop_folder=Path("stop"),
        log_file=Path("OpenVRStartup.log"),
    )
    assert "run all *.cmd files in the start folder" in msg
    assert "*.cmd files in stop" in msg
    assert "delete OpenVRStartup.log" in msg


def test_headless_shell_returns_once_closed() -> None:
    shell = HeadlessShell(on_exit=lambda: None, tick_s=0.01)
    t = threading.Thread(target=shell.run)
    t.start()
    shell.close()
    t.join(timeout=5)
    assert not t.is_alive()


def test_headless_shell_closed_before_run() -> None:
    shell = HeadlessShell(on_exit=lambda: None, tick_s=0.01)
    shell.close()
    shell.run()


def test_tray_exit_item_requests_cancel() -> None:
    requested: list[bool] = []
    shell = TrayShell(on_exit=lambda: requested.append(True))
    shell._menu_exit(FakeIcon(), None)
    assert requested == [True]


def test_tray_setup_after_close_stops_icon() -> None:
    shell = TrayShell(on_exit=lambda: None)
    shell.close()

    icon = FakeIcon()
    shell._on_setup(icon)

    assert icon.visible is True
    assert icon.stopped == 1


def test_tray_close_stops_running_icon() -> None:
    shell = TrayShell(on_exit=lambda: None)
    icon = FakeIcon()
    shell._icon = icon

    shell.close()
    shell.close()

    assert icon.stopped == 2


class FakeTk:
    instances: list["FakeTk"] = []

    def __init__(self) -> None:
        self.destroyed = False
        FakeTk.instances.append(self)

    def withdraw(self) -> None:
        pass

    def destroy(self) -> None:
        self.destroyed = True


def _install_fake_tkinter(monkeypatch: pytest.MonkeyPatch, showinfo: Any) -> None:
    FakeTk.instances = []
    messagebox = SimpleNamespace(showinfo=showinfo)
    monkeypatch.setitem(sys.modules, "tkinter", SimpleNamespace(Tk=FakeTk, messagebox=messagebox))
    monkeypatch.setitem(sys.modules, "tkinter.messagebox", messagebox)


def test_notice_dialog_failure_is_logged_not_raised(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def showinfo(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("no display name and no $DISPLAY environment variable")

    _install_fake_tkinter(monkeypatch, showinfo)

    assert show_first_run_notice("hello") is False
    assert FakeTk.instances[0].destroyed is True
    assert "Could not show first run notice" in caplog.text


def test_notice_shown(monkeypatch: pytest.MonkeyPatch) -> None:
    shown: list[tuple[str, str]] = []
    _install_fake_tkinter(monkeypatch, lambda title, message, parent: shown.append((title, message)))

    assert show_first_run_notice("hello", title="VrRunStartStop") is True
    assert shown == [("VrRunStartStop", "hello")]
    assert FakeTk.instances[0].destroyed is True
