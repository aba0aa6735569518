#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
git-bump CLI

Commands:
  release [VERSION]   Create and tag a release for the given version (default)
  redo                Amend the previous release and retag
  log [ARGS...]       Show the git log since the last release
  show [VERSION]      Show the most recent or given release
  next [SPECIFIER]    Show the version number that would be released

Notes:
- Installed as `git-bump`, so git picks it up as `git bump`.
- `git bump 1.2.0`, `git bump minor` and bare `git bump` all mean `release`.
"""

from __future__ import annotations

import re
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Settings
from .errors import GitBumpError
from .git import Git
from .release import Releaser, ReleaseResult
from .utils.logging import init_logger
from .version import KEYWORDS

HELP_EPILOG = """\
With no arguments, git bump defaults to creating a release with the least
significant component of the version number incremented.  For example,
1.2.3-rc4 becomes 1.2.3-rc5, while 6.7 becomes 6.8.  To override, provide a
version number argument, or one of the following keywords:

major: bump the most significant component

minor: bump the second most significant component

point: bump the third most significant component
"""

# ---------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------
app = typer.Typer(
    name="git bump",
    help="Create, amend and inspect version-tagged releases.",
    epilog=HELP_EPILOG,
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

SETTINGS = Settings.from_env()


def _releaser() -> Releaser:
    return Releaser(Git(SETTINGS.git))


@contextmanager
def _guard() -> Iterator[None]:
    """Turn GitBumpError into a red message and the error's exit code."""
    try:
        yield
    except GitBumpError as e:
        err_console.print(str(e), style="red", markup=False, highlight=False)
        raise typer.Exit(code=e.exit_code)


def _report(releaser: Releaser, result: ReleaseResult, *, verb: str) -> None:
    t = Table(box=box.MINIMAL, show_header=False)
    t.add_column("Key", style="bold cyan", no_wrap=True)
    t.add_column("Value")
    t.add_row("Tag", result.tag)
    t.add_row("Version", str(result.version))
    t.add_row("Patched work tree", "yes" if result.patched else "no")
    if result.summary:
        t.add_row("Summary", result.summary)
    console.print(t)
    console.print(
        f"Successfully {verb} {result.tag}.  If you made a mistake, use `git bump redo` to\n"
        "try again.  Once you are satisfied with the result, run\n\n"
        f"        git push {SETTINGS.remote} {releaser.git.current_branch()} {result.tag}",
        highlight=False,
    )


# ---------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------
@app.callback()
def _root_callback(
    version: Optional[bool] = typer.Option(None, "--version", is_eager=True, help="Show package version and exit."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    no_rich: bool = typer.Option(False, "--no-rich", help="Disable rich formatting (plain console)"),
) -> None:
    global SETTINGS, console
    if version:
        console.print(__version__)
        raise typer.Exit()
    SETTINGS = SETTINGS.override(log_level=log_level, rich=False if no_rich else None)
    if no_rich:
        console = Console(no_color=True, highlight=False)
    init_logger(SETTINGS.log_file, level=SETTINGS.log_level, rich=SETTINGS.rich)


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------
@app.command()
def release(
    request: Optional[str] = typer.Argument(None, metavar="[VERSION]", help="Version number or major|minor|point."),
    force: bool = typer.Option(False, "--force", "-f", help="Retag an existing version; match the previous diff without context."),
    edit: bool = typer.Option(True, "--edit/--no-edit", help="Open the commit message in an editor."),
) -> None:
    """Create and tag a release for the given version."""
    releaser = _releaser()
    with _guard():
        result = releaser.release(request, force=force, edit=edit)
    _report(releaser, result, verb="created")


@app.command()
def redo(
    edit: bool = typer.Option(True, "--edit/--no-edit", help="Open the commit message in an editor."),
) -> None:
    """Amend the previous release and retag."""
    releaser = _releaser()
    with _guard():
        result = releaser.redo(edit=edit)
    _report(releaser, result, verb="amended")


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def log(ctx: typer.Context) -> None:
    """Show the git log since the last release."""
    with _guard():
        rc = _releaser().log(list(ctx.args))
    raise typer.Exit(code=rc)


@app.command()
def show(
    target: Optional[str] = typer.Argument(None, metavar="[VERSION]", help="Version number or tag name."),
    version_only: bool = typer.Option(False, "--version-only", help="Print only the version number."),
    summary: bool = typer.Option(False, "--summary", help="Print a one-line summary of the release notes."),
) -> None:
    """Show the most recent or given release."""
    with _guard():
        releaser = _releaser()
        found = releaser.show(target)
        if found is None:
            raise typer.Exit(code=1)
        if version_only:
            typer.echo(str(found.version))
        elif summary:
            typer.echo(found.formatted_summary or "")
        else:
            typer.echo(releaser.message(found))


@app.command("next")
def next_(
    specifier: Optional[str] = typer.Argument(None, metavar="[SPECIFIER]", help="Version number or major|minor|point."),
) -> None:
    """Show the version number that would be released."""
    with _guard():
        typer.echo(str(_releaser().next_version(specifier)))


# ---------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------
_RELEASE_ARG_RE = re.compile(r"^v?\d")
# global options that may precede the command -> number of values they take
_GLOBAL_OPTIONS = {"--log-level": 1, "--no-rich": 0}


def _leading_globals(argv: List[str]) -> int:
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in _GLOBAL_OPTIONS:
            i += 1 + _GLOBAL_OPTIONS[arg]
        elif arg.startswith("--log-level="):
            i += 1
        else:
            break
    return i


def route_argv(argv: List[str]) -> List[str]:
    """Send bare invocations, version numbers and keywords to `release`."""
    n = _leading_globals(argv)
    if n > len(argv):
        # option value missing; let Click report it
        return argv
    head, rest = argv[:n], argv[n:]
    if not rest:
        return [*head, "release"]
    first = rest[0]
    if _RELEASE_ARG_RE.match(first) or first in KEYWORDS or first in ("-f", "--force", "--no-edit"):
        return [*head, "release", *rest]
    return argv


def main(argv: Optional[List[str]] = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    app(args=route_argv(args), prog_name="git bump")


if __name__ == "__main__":
    main()
