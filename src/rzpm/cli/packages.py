# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Package lifecycle commands: list, search, info, install, uninstall, upgrade, clean."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from ..logging import ok, warn
from ..package import Package
from ..site import Site
from .shared import cli_state, open_site, resolve_path


class ListKind(str, Enum):
    AVAILABLE = "available"
    INSTALLED = "installed"


def _describe(package: Package) -> str:
    return f"{package.name}: {package.summary}" if package.summary else package.name


def _compatibility_note(site: Site, name: str) -> str | None:
    record = site.ledger.get(name)
    if record is None or site.is_compatible(record):
        return None
    return (
        f"{name} was built for rizin {record.rizin_version} but rizin "
        f"{site.framework.major_minor} is installed; reinstall it"
    )


def list_command(
    ctx: typer.Context,
    kind: Annotated[ListKind, typer.Argument(help="Which packages to list.")] = ListKind.AVAILABLE,
) -> None:
    """List available or installed packages."""

    state = cli_state(ctx)
    with open_site(state) as site:
        if kind is ListKind.INSTALLED:
            packages = site.list_installed()
        else:
            packages = site.list_available()
        for package in packages:
            typer.echo(_describe(package))
            if kind is ListKind.INSTALLED and (note := _compatibility_note(site, package.name)):
                warn(note, use_emoji=state.emoji)


def search_command(
    ctx: typer.Context,
    pattern: Annotated[str, typer.Argument(help="Regular expression matched against package names.")],
) -> None:
    """Search available packages by name."""

    state = cli_state(ctx)
    with open_site(state) as site:
        for package in site.search(pattern):
            typer.echo(_describe(package))


def info_command(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Package name.")],
) -> None:
    """Show details about a package."""

    state = cli_state(ctx)
    with open_site(state) as site:
        package = site.get_package(name)
        typer.echo(f"Name: {package.name}")
        typer.echo(f"Version: {package.version}")
        typer.echo(f"Summary: {package.summary}")
        if package.description:
            typer.echo(f"Description: {package.description}")
        if package.source is not None:
            typer.echo(f"Source: {package.source.url}")
            typer.echo(f"Build system: {package.source.build_system}")
        typer.echo(f"Installed: {'yes' if site.is_installed(package) else 'no'}")


def install_command(
    ctx: typer.Context,
    names: Annotated[list[str] | None, typer.Argument(help="Packages to install.")] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Install from a local manifest file instead of the catalog."),
    ] = None,
) -> None:
    """Install packages from the catalog or from a manifest file."""

    state = cli_state(ctx)
    if not names and file is None:
        raise typer.BadParameter("give at least one package name or --file")
    with open_site(state) as site:
        packages: list[Package] = []
        if file is not None:
            packages.append(site.package_from_file(resolve_path(file)))
        packages.extend(site.get_package(name) for name in names or ())
        for package in packages:
            site.install(package)


def uninstall_command(
    ctx: typer.Context,
    names: Annotated[list[str], typer.Argument(help="Packages to uninstall.")],
) -> None:
    """Uninstall packages."""

    state = cli_state(ctx)
    with open_site(state) as site:
        installed = {package.name: package for package in site.list_installed()}
        for name in names:
            site.get_installed(name)
            site.uninstall(installed[name])


def upgrade_command(
    ctx: typer.Context,
    names: Annotated[list[str] | None, typer.Argument(help="Packages to upgrade.")] = None,
    upgrade_all: Annotated[bool, typer.Option("--all", help="Upgrade every installed package.")] = False,
) -> None:
    """Reinstall packages from the refreshed catalog."""

    state = cli_state(ctx)
    if not names and not upgrade_all:
        raise typer.BadParameter("give at least one package name or --all")
    with open_site(state, refresh=True) as site:
        if upgrade_all:
            upgraded = site.upgrade_all()
        else:
            upgraded = []
            for name in names or ():
                site.upgrade(name)
                upgraded.append(name)
        for name in upgraded:
            ok(f"{name} upgraded.", use_emoji=state.emoji)


def clean_command(
    ctx: typer.Context,
    names: Annotated[list[str], typer.Argument(help="Packages whose build artifacts are removed.")],
) -> None:
    """Remove downloaded sources and build directories."""

    state = cli_state(ctx)
    with open_site(state) as site:
        for name in names:
            site.clean(site.get_package(name))
            ok(f"Artifacts for {name} removed.", use_emoji=state.emoji)


def register_package_commands(app: typer.Typer) -> None:
    app.command("list")(list_command)
    app.command("search")(search_command)
    app.command("info")(info_command)
    app.command("install")(install_command)
    app.command("uninstall")(uninstall_command)
    app.command("upgrade")(upgrade_command)
    app.command("clean")(clean_command)


__all__ = ["ListKind", "register_package_commands"]
