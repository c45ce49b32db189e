"""High-level orchestration of a review session."""

from __future__ import annotations

import queue
import shutil
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from . import render
from .cache import CacheStore, default_cache_root
from .config import ReviewConfig
from .exceptions import MergeRequestError
from .fs import is_empty_dir
from .git import GitWorkspace
from .gitlab import fetch_merge_request
from .models import MergeRequestInfo
from .mutations import (
    BranchSwitch,
    DirectoryBackup,
    DirectorySwap,
    MutationLog,
    StashPush,
    WorkspaceMutation,
    terminate_on_signals,
)
from .shell import open_shell
from .swap import DependencySwapManager

Fetcher = Callable[[ReviewConfig, int], MergeRequestInfo]
ShellLauncher = Callable[[MergeRequestInfo], int]

# grace period on top of the HTTP timeout before the fetch counts as hung
_FETCH_GRACE = 5.0


@dataclass
class ReviewSession:
    config: ReviewConfig
    working_dir: Path
    git: GitWorkspace
    swaps: DependencySwapManager
    cache: CacheStore
    fetch: Fetcher
    shell: ShellLauncher

    def run(self, mr: int) -> int:
        """Review merge request ``mr`` and return the shell's exit status.

        Everything applied to the workspace is undone before returning or
        raising.
        """

        self.config.require_remote()
        ecosystems = self.config.ecosystems()
        self.cache.ensure_namespaces(eco for eco, _ in ecosystems)

        render.info(f"MR: {mr}")
        pending = BackgroundFetch(self.fetch, self.config, mr)
        pending.start()
        state = self.git.capture_state()
        with terminate_on_signals(), MutationLog(self.undo) as log:
            # meanwhile, start preparing a clean workspace
            for ecosystem, _ in ecosystems:
                backup = self.swaps.backup(ecosystem)
                if backup is not None:
                    log.record(backup)

            info = pending.result(self.config.timeout + _FETCH_GRACE)
            render.show_merge_request(info)
            self.git.prepare_branch(info.source_branch, state, log)

            for ecosystem, use_container in ecosystems:
                slot = self.cache.slot(ecosystem, info.project)
                log.record(self.swaps.swap_in(ecosystem, slot))
                self.swaps.run_install(ecosystem, use_container)

            return self.shell(info)

    def undo(self, mutation: WorkspaceMutation) -> None:
        if isinstance(mutation, DirectorySwap):
            self.swaps.swap_out(mutation)
        elif isinstance(mutation, DirectoryBackup):
            self.swaps.restore_backup(mutation)
        elif isinstance(mutation, (BranchSwitch, StashPush)):
            self.git.undo(mutation)
        else:
            raise TypeError(f"Unknown workspace mutation: {mutation!r}")


class BackgroundFetch:
    """Fetch MR info on a daemon thread and hand the outcome over once.

    The thread never keeps the process alive: an aborted session exits
    without waiting for an in-flight HTTP request.
    """

    def __init__(self, fetch: Fetcher, config: ReviewConfig, mr: int) -> None:
        self._fetch = fetch
        self._config = config
        self._mr = mr
        self._outcome: queue.Queue[tuple[MergeRequestInfo | None, Exception | None]] = queue.Queue(maxsize=1)
        self.thread = threading.Thread(target=self._run, name="mr-fetch", daemon=True)

    def start(self) -> None:
        self.thread.start()

    def _run(self) -> None:
        try:
            self._outcome.put((self._fetch(self._config, self._mr), None))
        except Exception as exc:  # handed to the waiting session
            self._outcome.put((None, exc))

    def result(self, timeout: float) -> MergeRequestInfo:
        try:
            info, error = self._outcome.get(timeout=timeout)
        except queue.Empty as exc:
            raise MergeRequestError(
                f"Timed out after {self._config.timeout:g}s waiting for MR info"
            ) from exc
        if error is not None:
            raise error
        return info


def run_review(config: ReviewConfig, mr: int, working_dir: Path | None = None) -> int:
    """Run a review session against the real git, filesystem and GitLab."""

    working_dir = working_dir or Path.cwd()
    session_dir = Path(tempfile.mkdtemp(prefix="gitlab-review-"))
    render.debug(f"Session directory: {session_dir}")
    session = ReviewSession(
        config=config,
        working_dir=working_dir,
        git=GitWorkspace(working_dir),
        swaps=DependencySwapManager(working_dir, session_dir),
        cache=CacheStore(default_cache_root()),
        fetch=fetch_merge_request,
        shell=lambda info: open_shell(info.iid, info.pipeline.status, session_dir=session_dir, cwd=working_dir),
    )
    try:
        return session.run(mr)
    finally:
        _cleanup_session_dir(session_dir)


def _cleanup_session_dir(session_dir: Path) -> None:
    if is_empty_dir(session_dir):
        shutil.rmtree(session_dir, ignore_errors=True)
    elif session_dir.exists():
        render.warning(f"Left files behind in {session_dir}, check them before deleting it")
