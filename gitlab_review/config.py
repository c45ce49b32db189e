"""Configuration discovery and merging.

Values come from the user-global file, then the closest per-project file, then
command-line flags; later sources win. The result is an immutable
:class:`ReviewConfig` handed to the session.
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .ecosystems import COMPOSER, YARN, Ecosystem
from .exceptions import ConfigError

APP_NAME = "gitlab-review"
GLOBAL_CONFIG_NAME = "config"
PROJECT_CONFIG_NAME = "gitlab-review"
CONFIG_EXTENSIONS = (".toml", ".yaml", ".yml", ".json")
PARENT_SEARCH_DEPTH = 3
DEFAULT_TIMEOUT = 30.0

_BOOL_KEYS = ("yarn", "composer", "ddev_composer")


@dataclass(frozen=True)
class ReviewConfig:
    """Resolved settings for one review session."""

    instance: str | None = None
    project_id: int | None = None
    token: str | None = None
    yarn: bool = False
    composer: bool = False
    ddev_composer: bool = False
    timeout: float = DEFAULT_TIMEOUT
    sources: tuple[Path, ...] = field(default_factory=tuple)

    def ecosystems(self) -> list[tuple[Ecosystem, bool]]:
        """Selected ecosystems paired with whether to install in the container."""

        selected: list[tuple[Ecosystem, bool]] = []
        if self.yarn:
            selected.append((YARN, False))
        if self.composer or self.ddev_composer:
            selected.append((COMPOSER, self.ddev_composer))
        return selected

    def require_remote(self) -> None:
        missing = [key for key in ("instance", "project_id") if getattr(self, key) in (None, "")]
        if missing:
            raise ConfigError(
                f"Missing configuration: {', '.join(missing)}. "
                f"Set it in ~/.config/{APP_NAME}/config.toml or a {PROJECT_CONFIG_NAME}.toml next to your project."
            )


def resolve_config(
    cli_overrides: Mapping[str, Any] | None = None,
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ReviewConfig:
    """Merge the config files and explicit CLI values into a ``ReviewConfig``.

    ``cli_overrides`` values of ``None`` mean "not given on the command line"
    and never override file values.
    """

    env = os.environ if env is None else env
    cwd = cwd or Path.cwd()
    merged: dict[str, Any] = {}
    sources: list[Path] = []
    for path in (find_global_config(env), find_project_config(cwd)):
        if path is None:
            continue
        merged.update(load_config_file(path))
        sources.append(path)
    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[_normalize_key(key)] = value
    return _build_config(merged, tuple(sources))


def global_config_dirs(env: Mapping[str, str]) -> list[Path]:
    dirs: list[Path] = []
    xdg = env.get("XDG_CONFIG_HOME")
    if xdg:
        dirs.append(Path(xdg) / APP_NAME)
    home = env.get("HOME")
    if home:
        dirs.append(Path(home) / ".config" / APP_NAME)
    return dirs


def find_global_config(env: Mapping[str, str]) -> Path | None:
    return _first_existing(global_config_dirs(env), GLOBAL_CONFIG_NAME)


def find_project_config(cwd: Path) -> Path | None:
    """Look for a project file in ``cwd`` and a few of its parents."""

    candidates = [cwd, *list(cwd.parents)[:PARENT_SEARCH_DEPTH]]
    return _first_existing(candidates, PROJECT_CONFIG_NAME)


def load_config_file(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    try:
        if path.suffix == ".toml":
            data = tomllib.loads(raw)
        elif path.suffix == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not load config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Could not load config file {path}: expected a mapping at the top level")
    try:
        return {_normalize_key(key): value for key, value in data.items()}
    except ConfigError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def _first_existing(directories: list[Path], stem: str) -> Path | None:
    for directory in directories:
        for extension in CONFIG_EXTENSIONS:
            candidate = directory / f"{stem}{extension}"
            if candidate.is_file():
                return candidate
    return None


def _normalize_key(key: Any) -> str:
    if not isinstance(key, str):
        raise ConfigError(f"Config keys must be strings, got {key!r}")
    return key.strip().replace("-", "_")


def _build_config(data: Mapping[str, Any], sources: tuple[Path, ...]) -> ReviewConfig:
    where = f" (from {', '.join(str(path) for path in sources)})" if sources else ""
    try:
        kwargs: dict[str, Any] = {
            "instance": _as_optional_str(data.get("instance"), "instance"),
            "project_id": _as_optional_int(data.get("project_id"), "project_id"),
            "token": _as_optional_str(data.get("token"), "token"),
            "timeout": _as_timeout(data.get("timeout", DEFAULT_TIMEOUT)),
        }
        for key in _BOOL_KEYS:
            kwargs[key] = _as_bool(data.get(key, False), key)
    except ConfigError as exc:
        raise ConfigError(f"{exc}{where}") from exc
    return ReviewConfig(sources=sources, **kwargs)


def _as_optional_str(value: Any, key: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value.strip() or None


def _as_optional_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"'{key}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ConfigError(f"'{key}' must be an integer")


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ConfigError(f"'{key}' must be true or false")


def _as_timeout(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError("'timeout' must be a positive number of seconds")
    return float(value)


__all__ = [
    "ReviewConfig",
    "resolve_config",
    "find_global_config",
    "find_project_config",
    "load_config_file",
]
