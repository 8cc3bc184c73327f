"""Read configs/*.yaml into one `{section: {key: value}}` dict.

Later files override earlier ones key by key within a section. String values
may reference `${ENV_VAR}`; every unresolved reference is reported in a single
ConfigError. Sections and keys are checked against `KNOWN_KEYS`, so a typo such
as `scripts.patern` fails instead of quietly falling back to a default.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Sequence

import yaml
from dotenv import load_dotenv

from vr_run_start_stop.config.errors import ConfigError
from vr_run_start_stop.config.model import KNOWN_KEYS


_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

_PROFILES: dict[str, tuple[str, ...]] = {
    "app": ("app.yaml",),
    "dev": ("app.yaml", "dev.yaml"),
}


def _read(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read YAML config: {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level must be a mapping: {path}")
    return data


def _check_keys(fragment: dict[str, Any], source: Path) -> None:
    for section, body in fragment.items():
        known = KNOWN_KEYS.get(section)
        if known is None:
            raise ConfigError(f"unknown section in {source}", path=str(section))
        if body is None:
            continue
        if not isinstance(body, dict):
            raise ConfigError(f"must be a mapping in {source}", path=section)
        for key in body:
            if key not in known:
                raise ConfigError(f"unknown key in {source}", path=f"{section}.{key}")


def _overlay(merged: dict[str, dict[str, Any]], fragment: dict[str, Any]) -> None:
    for section, body in fragment.items():
        merged.setdefault(section, {}).update(body or {})


def _substitute(value: str, where: str, problems: list[str]) -> str:
    def lookup(match: re.Match[str]) -> str:
        name = match.group(1)
        found = os.environ.get(name)
        if found:
            return found
        problems.append(f"- {name} ({'missing' if found is None else 'empty'}) at {where}")
        return match.group(0)

    return _ENV_REF.sub(lookup, value)


def load_config(
    paths: Path | Sequence[Path],
    *,
    load_dotenv_file: bool = True,
    dotenv_path: Path | None = None,
) -> dict[str, dict[str, Any]]:
    """Merge the given YAML files (in order) and expand `${ENV_VAR}` references.

    A `.env` file (default: the working directory's) is loaded first without
    overriding variables that are already set.

    Raises:
        ConfigError: missing or malformed file, unknown section/key, or an
            unset/empty environment variable.
    """

    files = [paths] if isinstance(paths, Path) else list(paths)
    if not files:
        raise ConfigError("No config files provided")

    if load_dotenv_file:
        load_dotenv(dotenv_path or Path.cwd() / ".env", override=False)

    merged: dict[str, dict[str, Any]] = {}
    for path in files:
        fragment = _read(path)
        _check_keys(fragment, path)
        _overlay(merged, fragment)

    problems: list[str] = []
    for section, body in merged.items():
        for key, value in body.items():
            if isinstance(value, str):
                body[key] = _substitute(value, f"{section}.{key}", problems)
    if problems:
        sources = ", ".join(str(p) for p in files)
        raise ConfigError("\n".join([f"Unresolved environment variables in {sources}:", *problems]))

    return merged


def resolve_profile_configs(*, profile: str, configs_dir: Path) -> list[Path]:
    """Files of `profile` under `configs_dir` that exist; empty means defaults only."""

    names = _PROFILES.get(profile)
    if names is None:
        raise ConfigError(f"Unknown profile: {profile}")
    return [configs_dir / n for n in names if (configs_dir / n).is_file()]
