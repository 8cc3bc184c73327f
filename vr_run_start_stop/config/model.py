from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from vr_run_start_stop.config.errors import ConfigError


DEFAULT_START_FOLDER = "./start/"
DEFAULT_STOP_FOLDER = "./stop/"
DEFAULT_PATTERN = "*.cmd"
DEFAULT_LOG_FILE = "./OpenVRStartup.log"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_RETRY_INTERVAL_S = 1.0
DEFAULT_POLL_INTERVAL_S = 1.0
DEFAULT_APP_KEY = "fayer3.VrRunStartStop"
DEFAULT_MANIFEST = "./app.vrmanifest"
DEFAULT_TRAY = True

# section -> keys understood by Settings.from_mapping
KNOWN_KEYS: dict[str, frozenset[str]] = {
    "scripts": frozenset({"start_folder", "stop_folder", "pattern"}),
    "runtime": frozenset({"app_key", "manifest_path", "retry_interval_s", "poll_interval_s"}),
    "logging": frozenset({"file", "level"}),
    "ui": frozenset({"tray"}),
}


def app_base_dir() -> Path:
    """Directory that relative paths in the config are resolved against.

    A frozen build uses the executable's folder; otherwise the folder holding
    the `vr_run_start_stop` package (the checkout root). The working directory
    SteamVR happens to launch us from never matters.
    """

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


def _get(d: Mapping[str, Any], path: str, default: Any) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _positive_float(raw: Mapping[str, Any], path: str, default: float) -> float:
    value = _get(raw, path, default)
    if isinstance(value, bool):
        raise ConfigError(f"must be a number, got {value!r}", path=path)
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"must be a number, got {value!r}", path=path) from e
    if out <= 0:
        raise ConfigError("must be > 0", path=path)
    return out


def _non_empty_str(raw: Mapping[str, Any], path: str, default: str) -> str:
    value = _get(raw, path, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("must be a non-empty string", path=path)
    return value


def _flag(raw: Mapping[str, Any], path: str, default: bool) -> bool:
    value = _get(raw, path, default)
    if not isinstance(value, bool):
        raise ConfigError(f"must be true or false, got {value!r}", path=path)
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Typed view over the merged YAML config."""

    start_folder: Path
    stop_folder: Path
    file_pattern: str
    log_file: Path
    log_level: str
    retry_interval_s: float
    poll_interval_s: float
    app_key: str
    manifest_path: Path
    tray: bool

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], *, base_dir: Path) -> "Settings":
        def resolve(path: str, default: str) -> Path:
            p = Path(_non_empty_str(raw, path, default)).expanduser()
            return p if p.is_absolute() else (base_dir / p).resolve()

        return cls(
            start_folder=resolve("scripts.start_folder", DEFAULT_START_FOLDER),
            stop_folder=resolve("scripts.stop_folder", DEFAULT_STOP_FOLDER),
            file_pattern=_non_empty_str(raw, "scripts.pattern", DEFAULT_PATTERN),
            log_file=resolve("logging.file", DEFAULT_LOG_FILE),
            log_level=_non_empty_str(raw, "logging.level", DEFAULT_LOG_LEVEL).upper(),
            retry_interval_s=_positive_float(raw, "runtime.retry_interval_s", DEFAULT_RETRY_INTERVAL_S),
            poll_interval_s=_positive_float(raw, "runtime.poll_interval_s", DEFAULT_POLL_INTERVAL_S),
            app_key=_non_empty_str(raw, "runtime.app_key", DEFAULT_APP_KEY),
            manifest_path=resolve("runtime.manifest_path", DEFAULT_MANIFEST),
            tray=_flag(raw, "ui.tray", DEFAULT_TRAY),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "scripts": {
                "start_folder": str(self.start_folder),
                "stop_folder": str(self.stop_folder),
                "pattern": self.file_pattern,
            },
            "runtime": {
                "app_key": self.app_key,
                "manifest_path": str(self.manifest_path),
                "retry_interval_s": self.retry_interval_s,
                "poll_interval_s": self.poll_interval_s,
            },
            "logging": {"file": str(self.log_file), "level": self.log_level},
            "ui": {"tray": self.tray},
        }
