from __future__ import annotations

import json
import logging
import re
from pathlib import Path

import pytest

from vr_run_start_stop.config.errors import ConfigError
from vr_run_start_stop.observability import configure_logging, log_file_path, prepare_log_file, set_state
from vr_run_start_stop.observability.logging import JsonFormatter, LineFormatter

_LINE_RE = re.compile(r"^\[(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3})\] (.*)$")


def test_prepare_log_file_reports_prior_existence_and_truncates(tmp_path: Path) -> None:
    log = tmp_path / "logs" / "OpenVRStartup.log"

    assert prepare_log_file(log) is False
    assert log.read_text(encoding="utf-8") == ""

    log.write_text("old run\n", encoding="utf-8")
    assert prepare_log_file(log) is True
    assert log.read_text(encoding="utf-8") == ""


def test_log_lines_are_timestamped_and_ordered(tmp_path: Path) -> None:
    log = tmp_path / "OpenVRStartup.log"
    prepare_log_file(log)
    configure_logging(level="INFO", log_file=log)

    lg = logging.getLogger("vr_run_start_stop.test")
    for i in range(20):
        lg.info("line %d", i)

    lines = log.read_text(encoding="utf-8").splitlines()
    matches = [_LINE_RE.match(line) for line in lines]
    assert all(matches)
    assert [m.group(2) for m in matches] == [f"line {i}" for i in range(20)]
    stamps = [m.group(1) for m in matches]
    assert stamps == sorted(stamps)


def test_configure_logging_does_not_duplicate_handlers(tmp_path: Path) -> None:
    log = tmp_path / "x.log"
    configure_logging(level="INFO", log_file=log)
    configure_logging(level="INFO", log_file=log)

    logging.getLogger("vr_run_start_stop.test").info("once")
    assert log.read_text(encoding="utf-8").count("once") == 1


def test_log_file_path_requires_configuration(tmp_path: Path) -> None:
    configure_logging(level="INFO")
    with pytest.raises(ConfigError, match="log file path not set"):
        log_file_path()

    configure_logging(level="INFO", log_file=tmp_path / "a.log")
    assert log_file_path() == tmp_path / "a.log"


def test_line_formatter_milliseconds() -> None:
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
    record.created = 1_700_000_000.0
    record.msecs = 7.9
    out = LineFormatter().format(record)
    assert re.fullmatch(r"\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.007\] hello", out)


def test_json_formatter_carries_extra_and_state() -> None:
    set_state("AwaitingConnection")
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "Found: %d script(s)", (2,), None)
    record.folder = "start"
    record.opaque = object()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "Found: 2 script(s)"
    assert payload["level"] == "WARNING"
    assert payload["folder"] == "start"
    assert payload["state"] == "AwaitingConnection"
    assert payload["opaque"].startswith("<object")


def test_traceback_lines_are_stamped(tmp_path: Path) -> None:
    log = tmp_path / "OpenVRStartup.log"
    prepare_log_file(log)
    configure_logging(level="INFO", log_file=log)

    lg = logging.getLogger("vr_run_start_stop.test")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        lg.exception("Tray icon unavailable, running without it")
    lg.info("after")

    lines = log.read_text(encoding="utf-8").splitlines()
    assert len(lines) > 3
    assert all(_LINE_RE.match(line) for line in lines)
    assert _LINE_RE.match(lines[0]).group(2) == "Tray icon unavailable, running without it"
    assert any(line.endswith("RuntimeError: boom") for line in lines)
    assert _LINE_RE.match(lines[-1]).group(2) == "after"


def test_multiline_message_is_stamped_per_line() -> None:
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "first\nsecond", None, None)
    out = LineFormatter().format(record).splitlines()
    assert len(out) == 2
    assert all(_LINE_RE.match(line) for line in out)
    assert _LINE_RE.match(out[1]).group(2) == "second"
