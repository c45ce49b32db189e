"""Typer-based CLI for gitlab-review."""

from __future__ import annotations

from typing import Annotated, Optional

import typer

from . import __version__, render
from .config import resolve_config
from .exceptions import ReviewError, ValidationError
from .session import run_review

app = typer.Typer(
    help="Check out a GitLab merge request locally and review it in a throwaway shell",
    add_completion=False,
)


def parse_mr(raw: str) -> int:
    value = raw.strip().removeprefix("!")
    if not value.isdigit() or int(value) == 0:
        raise ValidationError(f"Not a merge request number: {raw!r}. Usage: gitlab-review [OPTIONS] MR")
    return int(value)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gitlab-review {__version__}")
        raise typer.Exit()


@app.command()
def main(
    mr: Annotated[str, typer.Argument(metavar="MR", help="Merge request number (IID), e.g. 42 or !42.")],
    yarn: Annotated[
        Optional[bool],
        typer.Option("--yarn/--no-yarn", help="Install packages using yarn."),
    ] = None,
    composer: Annotated[
        Optional[bool],
        typer.Option("--composer/--no-composer", help="Install packages using composer."),
    ] = None,
    ddev_composer: Annotated[
        Optional[bool],
        typer.Option("--ddev-composer/--no-ddev-composer", help="Run composer inside ddev."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show the commands being run."),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = None,
) -> None:
    """Review merge request MR.

    Stashes local changes, switches to the MR's source branch, swaps
    dependency directories with a per-project cache, installs, and opens a
    shell. Everything is put back when the shell exits.
    """
    render.set_verbose(verbose)
    try:
        mr_number = parse_mr(mr)
        config = resolve_config(
            {"yarn": yarn, "composer": composer, "ddev_composer": ddev_composer},
        )
        for source in config.sources:
            render.debug(f"Loaded config from {source}")
        run_review(config, mr_number)
    except ReviewError as err:
        _fail(str(err))
    except KeyboardInterrupt:
        _fail("Aborted by user", 130)
    render.success("Review finished")


def _fail(message: str, code: int = 1) -> None:
    render.error(message)
    raise typer.Exit(code)


if __name__ == "__main__":
    app()
