"""Reversible workspace mutations and the log that undoes them."""

from __future__ import annotations

import signal
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Union

from . import render
from .ecosystems import Ecosystem


@dataclass(frozen=True)
class DirectoryBackup:
    """The developer's own dependency directory, set aside for the session."""

    ecosystem: Ecosystem
    working_path: Path
    backup_path: Path


@dataclass(frozen=True)
class DirectorySwap:
    """A cache slot bound to the working dependency path.

    Undoing it moves whatever occupies ``working_path`` into ``cache_path``.
    ``applied`` is False when the binding could not be made; undoing such a
    swap does nothing.
    """

    ecosystem: Ecosystem
    working_path: Path
    cache_path: Path
    applied: bool = True


@dataclass(frozen=True)
class StashPush:
    """A stash created by this session, identified by its commit id."""

    ref: str
    branch: str


@dataclass(frozen=True)
class BranchSwitch:
    from_branch: str
    to_branch: str
    # from_branch is a commit id when the session started on a detached HEAD
    from_detached: bool = False


WorkspaceMutation = Union[DirectoryBackup, DirectorySwap, StashPush, BranchSwitch]


def describe(mutation: WorkspaceMutation) -> str:
    if isinstance(mutation, DirectoryBackup):
        return f"{mutation.ecosystem.dependency_dir} backup"
    if isinstance(mutation, DirectorySwap):
        return f"{mutation.ecosystem.dependency_dir} cache"
    if isinstance(mutation, StashPush):
        return "stash"
    return f"switch to {mutation.to_branch}"


class MutationLog:
    """Ordered record of applied mutations, unwound last-in first-out.

    Used as a context manager, leaving the block unwinds the log with the
    ``undo`` callable given at construction, whatever the exit path.
    """

    def __init__(self, undo: Callable[[WorkspaceMutation], None] | None = None) -> None:
        self._undo = undo
        self._entries: list[WorkspaceMutation] = []

    def __enter__(self) -> MutationLog:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._undo is not None:
            self.unwind(self._undo)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[WorkspaceMutation, ...]:
        return tuple(self._entries)

    def record(self, mutation: WorkspaceMutation) -> None:
        if isinstance(mutation, (DirectoryBackup, DirectorySwap)):
            for existing in self._entries:
                if type(existing) is type(mutation) and existing.ecosystem == mutation.ecosystem:
                    raise ValueError(
                        f"{type(mutation).__name__} already recorded for {mutation.ecosystem.name}"
                    )
        render.debug(f"Recorded {describe(mutation)}")
        self._entries.append(mutation)

    def unwind(self, undo: Callable[[WorkspaceMutation], None]) -> None:
        """Undo every recorded mutation once, newest first.

        A failing undo is reported and the remaining ones still run. An
        interrupt (Ctrl-C, or a signal turned into ``SystemExit``) is held
        back until every undo was attempted, then re-raised.
        """

        if not self._entries:
            return
        render.step("Cleaning up temporary changes")
        entries, self._entries = self._entries, []
        interrupted: BaseException | None = None
        for mutation in reversed(entries):
            try:
                undo(mutation)
            except (KeyboardInterrupt, SystemExit) as exc:
                render.warning(f"Interrupted while restoring {describe(mutation)}, restoring the rest first")
                if interrupted is None:
                    interrupted = exc
            except Exception as exc:  # keep restoring the rest
                render.warning(f"Could not restore {describe(mutation)}: {exc}")
        if interrupted is not None:
            raise interrupted


@contextmanager
def terminate_on_signals(signums: tuple[int, ...] | None = None) -> Iterator[None]:
    """Turn termination signals into ``SystemExit`` so cleanup blocks run."""

    if signums is None:
        signums = tuple(
            getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
        )

    def _raise(signum, frame):
        raise SystemExit(128 + signum)

    previous = {}
    for signum in signums:
        previous[signum] = signal.signal(signum, _raise)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
