"""Thin wrappers around git CLI commands and the branch/stash lifecycle."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable

from . import render
from .exceptions import GitCommandError
from .models import RepoState
from .mutations import BranchSwitch, MutationLog, StashPush, WorkspaceMutation


def run_git(
    args: Iterable[str],
    *,
    cwd: Path,
    raise_on_error: bool = True,
    stream: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and optionally raise on failure.

    With ``stream`` the output goes straight to the terminal instead of being
    captured.
    """

    cmd = ["git", *args]
    render.command(cmd)
    proc = subprocess.run(
        cmd,
        cwd=str(cwd),
        capture_output=not stream,
        text=True,
        check=False,
    )
    if raise_on_error and proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
    return proc


def current_branch(path: Path) -> str:
    return run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=path).stdout.strip()


def head_ref(path: Path) -> tuple[str, bool]:
    """Return the checked out branch, or the commit id and True when detached."""

    branch = current_branch(path)
    if branch != "HEAD":
        return branch, False
    return run_git(["rev-parse", "HEAD"], cwd=path).stdout.strip(), True


def is_clean(path: Path) -> bool:
    return not run_git(["status", "--porcelain"], cwd=path).stdout.strip()


def stash_refs(path: Path) -> list[str]:
    proc = run_git(["stash", "list", "--format=%H"], cwd=path)
    return [line.strip() for line in proc.stdout.splitlines() if line.strip()]


class GitWorkspace:
    """Checks out a merge request's branch and puts things back afterwards."""

    def __init__(self, repo_dir: Path) -> None:
        self.repo_dir = repo_dir

    def capture_state(self) -> RepoState:
        ref, detached = head_ref(self.repo_dir)
        return RepoState(initial_branch=ref, is_clean=is_clean(self.repo_dir), detached=detached)

    def prepare_branch(self, target_branch: str, state: RepoState, log: MutationLog) -> None:
        """Stash local changes if needed, then fetch, switch and pull.

        Every applied step is recorded in ``log``. Failures raise
        ``GitCommandError``.
        """

        if not state.is_clean:
            log.record(self.stash_push(state.initial_branch))
        render.step(f"Switching to branch {target_branch}")
        run_git(["fetch"], cwd=self.repo_dir, stream=True)
        run_git(["switch", target_branch], cwd=self.repo_dir, stream=True)
        log.record(
            BranchSwitch(
                from_branch=state.initial_branch,
                to_branch=target_branch,
                from_detached=state.detached,
            )
        )
        # make sure the branch itself is up to date
        run_git(["pull"], cwd=self.repo_dir, stream=True)

    def stash_push(self, branch: str) -> StashPush:
        render.info("Stashing local changes")
        before = stash_refs(self.repo_dir)
        run_git(
            ["stash", "push", "--include-untracked", "-m", f"gitlab-review: changes on {branch}"],
            cwd=self.repo_dir,
        )
        after = stash_refs(self.repo_dir)
        if not after or after[:1] == before[:1]:
            raise GitCommandError(["git", "stash", "push"], 0, stderr="No stash entry was created.")
        return StashPush(ref=after[0], branch=branch)

    def undo(self, mutation: WorkspaceMutation) -> None:
        if isinstance(mutation, BranchSwitch):
            render.info(f"Switching back to {mutation.from_branch}")
            if mutation.from_detached:
                run_git(["switch", "--detach", mutation.from_branch], cwd=self.repo_dir, stream=True)
            else:
                run_git(["switch", mutation.from_branch], cwd=self.repo_dir, stream=True)
        elif isinstance(mutation, StashPush):
            self.stash_pop(mutation)
        else:
            raise TypeError(f"Not a git mutation: {mutation!r}")

    def stash_pop(self, stash: StashPush) -> None:
        """Pop exactly the stash this session created."""

        branch, _ = head_ref(self.repo_dir)
        if branch != stash.branch:
            render.warning(
                f"Still on {branch}, not {stash.branch}; leaving your changes in the stash ({stash.ref[:12]})"
            )
            return
        refs = stash_refs(self.repo_dir)
        if stash.ref not in refs:
            render.warning(f"Stash {stash.ref[:12]} is gone, nothing to restore")
            return
        index = refs.index(stash.ref)
        render.info("Restoring stashed changes")
        run_git(["stash", "pop", f"stash@{{{index}}}"], cwd=self.repo_dir, stream=True)
