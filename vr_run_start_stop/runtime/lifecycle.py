from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from vr_run_start_stop import __version__
from vr_run_start_stop.config import ConfigError, Settings, app_base_dir, load_config, resolve_profile_configs
from vr_run_start_stop.observability import (
    bind_context,
    configure_logging,
    log_file_path,
    new_session_id,
    prepare_log_file,
)
from vr_run_start_stop.runtime.gateway import OpenVRGateway
from vr_run_start_stop.runtime.scripts import ScriptRunner, find_scripts
from vr_run_start_stop.runtime.state_machine import LifecycleMachine
from vr_run_start_stop.shell import HeadlessShell, TrayShell, first_run_message, show_first_run_notice


logger = logging.getLogger(__name__)

_KNOWN_COMMANDS = {"run", "print-config", "list-scripts"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vr-run-start-stop",
        description="Run scripts when SteamVR starts and when it shuts down",
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING); overrides logging.level",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Directory relative paths resolve against (default: the install folder)",
    )
    parser.add_argument(
        "--no-tray",
        action="store_true",
        help="Do not show a tray icon; Ctrl+C exits",
    )

    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML config file (skips profile resolution)",
    )
    group.add_argument(
        "--profile",
        choices=["app", "dev"],
        default="app",
        help="Config profile under <base-dir>/configs (app loads app.yaml; dev overlays dev.yaml)",
    )

    sub = parser.add_subparsers(dest="command")

    run_p = sub.add_parser("run", help="Wait for SteamVR and run the start/stop scripts")
    run_p.set_defaults(command="run")

    print_p = sub.add_parser("print-config", help="Load and print the effective settings")
    print_p.set_defaults(command="print-config")

    list_p = sub.add_parser("list-scripts", help="List the scripts that would be launched")
    list_p.set_defaults(command="list-scripts")

    return parser


def _normalize_argv(argv: Sequence[str] | None) -> list[str]:
    argv_list = list(argv) if argv is not None else sys.argv[1:]
    # Default to `run` when no subcommand is given anywhere on the line.
    if not any(a in _KNOWN_COMMANDS for a in argv_list):
        argv_list = [*argv_list, "run"]
    return argv_list


def load_settings(ns: argparse.Namespace) -> Settings:
    base_dir = (ns.base_dir or app_base_dir()).resolve()
    if ns.config is not None:
        config_paths = [ns.config]
    else:
        config_paths = resolve_profile_configs(profile=ns.profile, configs_dir=base_dir / "configs")

    raw: dict[str, Any] = load_config(config_paths) if config_paths else {}
    logger.debug("config_loaded", extra={"config_files": [str(p) for p in config_paths]})
    return Settings.from_mapping(raw, base_dir=base_dir)


def _list_scripts(settings: Settings) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for name, folder in (("start", settings.start_folder), ("stop", settings.stop_folder)):
        files = find_scripts(folder, settings.file_pattern) if folder.is_dir() else []
        out[name] = [str(p) for p in files]
    return out


def run_agent(settings: Settings, *, use_tray: bool) -> int:
    """Wire the worker and the shell together and block until both are done."""

    first_run = not prepare_log_file(settings.log_file)
    configure_logging(level=settings.log_level, log_file=settings.log_file)
    bind_context(session_id=new_session_id())
    logger.info("Application starting (%s)", __version__)

    finished = threading.Event()
    machine: LifecycleMachine

    def request_exit() -> None:
        machine.request_cancel()

    shell: TrayShell | HeadlessShell = (
        TrayShell(on_exit=request_exit) if use_tray else HeadlessShell(on_exit=request_exit)
    )

    def on_terminated() -> None:
        finished.set()
        shell.close()

    machine = LifecycleMachine(
        gateway=OpenVRGateway(app_key=settings.app_key, manifest_path=settings.manifest_path),
        runner=ScriptRunner(pattern=settings.file_pattern),
        start_folder=settings.start_folder,
        stop_folder=settings.stop_folder,
        retry_interval_s=settings.retry_interval_s,
        poll_interval_s=settings.poll_interval_s,
        on_terminated=on_terminated,
    )
    worker = machine.start_in_background()

    if first_run:
        show_first_run_notice(
            first_run_message(
                pattern=settings.file_pattern,
                start_folder=settings.start_folder,
                stop_folder=settings.stop_folder,
                log_file=log_file_path(),
            )
        )
    machine.mark_ready()

    try:
        shell.run()
    except Exception:  # noqa: BLE001
        logger.exception("Tray icon unavailable, running without it")
        shell = HeadlessShell(on_exit=request_exit)
        if finished.is_set():
            shell.close()
        shell.run()

    worker.join(timeout=max(settings.retry_interval_s, settings.poll_interval_s) * 2 + 1)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint referenced by pyproject.toml."""

    parser = _build_parser()
    try:
        ns = parser.parse_args(_normalize_argv(argv))
    except SystemExit as e:
        # argparse has already printed help/usage to stdout/stderr.
        code = e.code
        return int(code) if isinstance(code, int) else 1

    try:
        configure_logging(level=ns.log_level or "INFO")
        settings = load_settings(ns)
        if ns.log_level:
            settings = replace(settings, log_level=ns.log_level.upper())

        if ns.command == "print-config":
            sys.stdout.write(json.dumps(settings.as_dict(), ensure_ascii=False, indent=2))
            sys.stdout.write("\n")
            return 0

        if ns.command == "list-scripts":
            sys.stdout.write(json.dumps(_list_scripts(settings), ensure_ascii=False, indent=2))
            sys.stdout.write("\n")
            return 0

        return run_agent(settings, use_tray=settings.tray and not ns.no_tray)

    except ConfigError as e:
        logger.error("config_error", extra={"error": str(e)})
        sys.stderr.write(f"ConfigError: {e}\n")
        return 2
    except Exception as e:  # noqa: BLE001
        logger.exception("fatal_error")
        sys.stderr.write(f"Fatal error: {e}\n")
        return 1
