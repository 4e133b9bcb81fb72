# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Site maintenance commands."""

from __future__ import annotations

from typing import Annotated

import typer

from ..logging import ok, warn
from .shared import cli_state, open_site


def update_command(ctx: typer.Context) -> None:
    """Refresh the package catalog."""

    state = cli_state(ctx)
    with open_site(state, refresh=True) as site:
        ok(f"Catalog updated ({len(site.list_available())} packages).", use_emoji=state.emoji)


def delete_command(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
) -> None:
    """Delete the whole site directory, including the catalog and ledger."""

    state = cli_state(ctx)
    with open_site(state) as site:
        if not yes and not typer.confirm(f"Delete {site.path}?"):
            warn("Aborted.", use_emoji=state.emoji)
            raise typer.Exit(code=1)
        site.remove()
        ok(f"Site {site.path} removed.", use_emoji=state.emoji)


def register_site_commands(app: typer.Typer) -> None:
    app.command("update")(update_command)
    app.command("delete")(delete_command)


__all__ = ["register_site_commands"]
