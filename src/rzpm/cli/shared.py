# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""State and helpers shared by every rz-pm command."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import requests
import typer

from ..config import RzPmConfig
from ..errors import RzPmError
from ..logging import fail
from ..process import SubprocessExecutionError
from ..site import Site

REPORTED_ERRORS: Final[tuple[type[Exception], ...]] = (
    RzPmError,
    OSError,
    ValueError,
    SubprocessExecutionError,
    requests.RequestException,
)


@dataclass(slots=True, frozen=True)
class CLIState:
    """Options resolved by the top-level callback and handed to each command."""

    config: RzPmConfig
    emoji: bool = True


def cli_state(ctx: typer.Context) -> CLIState:
    """Return the :class:`CLIState` stored on ``ctx`` by the app callback."""

    state = ctx.find_object(CLIState)
    if state is None:  # pragma: no cover - the callback always runs first
        raise RuntimeError("rz-pm CLI state is not initialised")
    return state


def exit_with_error(exc: Exception, *, state: CLIState) -> typer.Exit:
    """Print ``exc`` as a failure and return the exit signal for the caller to raise."""

    fail(str(exc), use_emoji=state.emoji)
    return typer.Exit(code=1)


@contextmanager
def open_site(state: CLIState, *, refresh: bool = False) -> Iterator[Site]:
    """Open the configured site for the duration of one command.

    Errors raised while the site is open are reported and turned into exit
    code 1; the lock is always released.
    """

    try:
        site = Site.open(refresh_catalog=refresh, config=state.config)
    except REPORTED_ERRORS as exc:
        raise exit_with_error(exc, state=state) from exc
    try:
        yield site
    except REPORTED_ERRORS as exc:
        raise exit_with_error(exc, state=state) from exc
    finally:
        if site.locked:
            site.close()


def resolve_path(value: Path) -> Path:
    return value.expanduser().resolve()


__all__ = ["REPORTED_ERRORS", "CLIState", "cli_state", "exit_with_error", "open_site", "resolve_path"]
