"""Moving dependency directories between the working tree, backups and the cache."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from . import render
from .cache import CacheSlot
from .ecosystems import Ecosystem
from .fs import is_empty_dir, move_dir
from .mutations import DirectoryBackup, DirectorySwap


class DependencySwapManager:
    """Swaps an ecosystem's dependency directory in and out of ``working_dir``.

    Every failure here is reported as a warning; a move that did not happen
    leaves the mutation in its "not applied" state.
    """

    def __init__(self, working_dir: Path, session_dir: Path) -> None:
        self.working_dir = working_dir
        self.session_dir = session_dir

    def working_path(self, ecosystem: Ecosystem) -> Path:
        return self.working_dir / ecosystem.dependency_dir

    def backup(self, ecosystem: Ecosystem) -> DirectoryBackup | None:
        source = self.working_path(ecosystem)
        if not source.exists():
            render.debug(f"No {ecosystem.dependency_dir} to back up")
            return None
        target = self.session_dir / ecosystem.dependency_dir
        render.info(f"Moving {ecosystem.dependency_dir} to {target}")
        try:
            move_dir(source, target)
        except (OSError, shutil.Error) as exc:
            render.warning(f"Could not back up {ecosystem.dependency_dir}: {exc}")
            return None
        return DirectoryBackup(ecosystem=ecosystem, working_path=source, backup_path=target)

    def restore_backup(self, backup: DirectoryBackup) -> None:
        name = backup.ecosystem.dependency_dir
        if not backup.backup_path.exists():
            render.info(f"{name} backup not found, leaving current state intact.")
            return
        if backup.working_path.exists():
            leftover = self.session_dir / f"{name}.leftover"
            move_dir(backup.working_path, leftover)
            render.warning(f"Moved the review's {name} aside to {leftover}")
        render.info(f"Restoring {name} from backup")
        move_dir(backup.backup_path, backup.working_path)

    def swap_in(self, ecosystem: Ecosystem, slot: CacheSlot) -> DirectorySwap:
        """Bind ``slot`` to the working dependency path.

        Cached contents, when present, are moved into place. Without them the
        path is left for the install step and the binding still stands, so
        swapping out populates the cache.
        """

        target = self.working_path(ecosystem)
        if target.exists():
            render.warning(
                f"{target} is still in place, not using the {ecosystem.name} cache for this review"
            )
            return DirectorySwap(ecosystem, target, slot.path, applied=False)
        if slot.is_populated():
            render.info(f"Using cached {ecosystem.dependency_dir} from {slot.path}")
            try:
                move_dir(slot.path, target)
            except (OSError, shutil.Error) as exc:
                render.warning(f"Could not use cache: {exc}")
                if target.exists():
                    return DirectorySwap(ecosystem, target, slot.path, applied=False)
        else:
            render.info(f"No cached {ecosystem.dependency_dir} for project {slot.project}")
        return DirectorySwap(ecosystem, target, slot.path)

    def swap_out(self, swap: DirectorySwap) -> None:
        name = swap.ecosystem.dependency_dir
        if not swap.applied:
            return
        if not swap.working_path.exists():
            render.info(f"No {name} to save to the cache.")
            return
        if swap.cache_path.exists():
            if not is_empty_dir(swap.cache_path):
                render.warning(
                    f"Could not save {name} to cache: {swap.cache_path} is already occupied"
                )
                return
            swap.cache_path.rmdir()
        render.info(f"Saving {name} to cache {swap.cache_path}")
        try:
            move_dir(swap.working_path, swap.cache_path)
        except (OSError, shutil.Error) as exc:
            render.warning(f"Could not save {name} to cache: {exc}")

    def run_install(self, ecosystem: Ecosystem, use_container: bool = False) -> bool:
        """Run the install command with live output. Returns True on success."""

        cmd = ecosystem.install_command(use_container)
        render.step(f"Installing {ecosystem.name} dependencies")
        render.command(cmd)
        try:
            proc = subprocess.run(cmd, cwd=str(self.working_dir), check=False)
        except FileNotFoundError:
            render.warning(f"Could not install {ecosystem.name} dependencies: {cmd[0]} not found")
            return False
        if proc.returncode != 0:
            render.warning(
                f"Could not install {ecosystem.name} dependencies (exit {proc.returncode})"
            )
            return False
        return True
