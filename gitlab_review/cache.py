"""On-disk dependency cache keyed by ecosystem and project."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from .ecosystems import Ecosystem
from .exceptions import CacheError
from .fs import ensure_directory
from .models import ProjectIdentity

APP_DIR_NAME = "gitlab-review"


@dataclass(frozen=True)
class CacheSlot:
    """Where a project's installed dependency tree is parked between sessions."""

    ecosystem: Ecosystem
    project: ProjectIdentity
    path: Path

    def is_populated(self) -> bool:
        return self.path.exists()


@dataclass(frozen=True)
class CacheStore:
    root: Path

    def namespace_dir(self, ecosystem: Ecosystem) -> Path:
        return self.root / ecosystem.cache_namespace

    def ensure_namespaces(self, ecosystems: Iterable[Ecosystem]) -> None:
        for ecosystem in ecosystems:
            target = self.namespace_dir(ecosystem)
            try:
                ensure_directory(target)
            except OSError as exc:
                raise CacheError(f"Can't create cache dir {target}: {exc}") from exc

    def slot(self, ecosystem: Ecosystem, project: ProjectIdentity) -> CacheSlot:
        return CacheSlot(
            ecosystem=ecosystem,
            project=project,
            path=self.namespace_dir(ecosystem) / str(project.project_id),
        )


def default_cache_root(env: Mapping[str, str] | None = None, platform: str | None = None) -> Path:
    """Return the per-user cache directory for this tool.

    Follows the platform conventions: ``$XDG_CACHE_HOME`` or ``~/.cache`` on
    Linux, ``~/Library/Caches`` on macOS and ``%LOCALAPPDATA%`` on Windows.
    """

    env = os.environ if env is None else env
    platform = platform or sys.platform
    if platform.startswith("win"):
        raw = env.get("LOCALAPPDATA")
        if not raw:
            raise CacheError("Can't find a user cache dir, is %LOCALAPPDATA% set?")
        return Path(raw) / APP_DIR_NAME
    home = env.get("HOME")
    if platform == "darwin":
        if not home:
            raise CacheError("Can't find a user cache dir, is your $HOME set?")
        return Path(home) / "Library" / "Caches" / APP_DIR_NAME
    xdg = env.get("XDG_CACHE_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg) / APP_DIR_NAME
    if not home:
        raise CacheError("Can't find a user cache dir, is your $HOME set?")
    return Path(home) / ".cache" / APP_DIR_NAME
