"""The interactive review shell."""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import Mapping

from . import render

GREEN_BG = 102
YELLOW_BG = 103


def build_prompt(mr: int | str, status: str) -> str:
    """Return a bash PS1 showing the merge request and its pipeline status."""

    color = GREEN_BG if status == "success" else YELLOW_BG
    return (
        rf"\[\e[97;101;1m\] <Reviewing MR-{mr}> "
        rf"\[\e[0;30;{color}m\] Pipeline {status} "
        r"\[\e[0m\] \w % "
    )


def write_rcfile(session_dir: Path, prompt: str) -> Path:
    """Write an rc file that loads the user's bashrc and then sets our prompt."""

    rcfile = session_dir / "bashrc"
    rcfile.write_text(
        '[ -f "$HOME/.bashrc" ] && . "$HOME/.bashrc"\n'
        f"PS1={shlex.quote(prompt)}\n",
        encoding="utf-8",
    )
    return rcfile


def open_shell(
    mr: int | str,
    status: str,
    *,
    session_dir: Path,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    """Run bash until the user exits it and return its exit status."""

    prompt = build_prompt(mr, status)
    rcfile = write_rcfile(session_dir, prompt)
    shell_env = dict(os.environ if env is None else env)
    shell_env["PS1"] = prompt
    shell_env["GITLAB_REVIEW_MR"] = str(mr)
    cmd = ["bash", "--rcfile", str(rcfile), "-i"]
    render.success(f"Opening a review shell for MR {mr}. Exit it to restore your workspace.")
    render.command(cmd)
    proc = subprocess.Popen(cmd, cwd=str(cwd) if cwd else None, env=shell_env)
    try:
        while True:
            try:
                return proc.wait()
            except KeyboardInterrupt:
                # Ctrl-C belongs to the shell, keep waiting
                continue
    finally:
        rcfile.unlink(missing_ok=True)
