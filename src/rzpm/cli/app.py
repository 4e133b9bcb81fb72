# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared services."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .. import __version__
from ..config import ConfigError, load_config
from ..logging import configure_logging, fail
from .packages import register_package_commands
from .shared import CLIState, resolve_path
from .site_commands import register_site_commands

app = typer.Typer(
    name="rz-pm",
    help="Package manager for rizin plugins.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"rz-pm {__version__}")
        raise typer.Exit()


@app.callback()
def root(
    ctx: typer.Context,
    site_dir: Annotated[
        Path | None,
        typer.Option("--site-dir", help="Site directory (defaults to $RZPM_SITEDIR or the XDG data dir)."),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Show diagnostic logging and build output."),
    ] = False,
    emoji: Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji in CLI output.")] = True,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Print the version and exit."),
    ] = False,
) -> None:
    """Resolve configuration shared by every command."""

    try:
        config = load_config(
            site_dir=resolve_path(site_dir) if site_dir is not None else None,
            debug=debug or None,
        )
    except ConfigError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=1) from exc
    configure_logging(debug=config.debug)
    ctx.obj = CLIState(config=config, emoji=emoji)


register_package_commands(app)
register_site_commands(app)


def main() -> None:
    """Console-script entry point."""

    app()


__all__ = ["app", "main"]
