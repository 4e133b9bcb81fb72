# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from subprocess import CompletedProcess

import pytest

from rzpm.config import RzPmConfig
from rzpm.console import get_console_manager
from rzpm.framework import FrameworkInfo

MINIMAL_MANIFEST = """\
name: {name}
version: "{version}"
summary: {summary}
"""


class FakeRunner:
    """Command runner recording every invocation and replying from a script."""

    def __init__(self, replies: Mapping[tuple[str, ...], str] | None = None) -> None:
        self.calls: list[tuple[tuple[str, ...], Path | None]] = []
        self.replies = dict(replies or {})
        self.failures: dict[tuple[str, ...], Exception] = {}

    def __call__(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = False,
    ) -> CompletedProcess[str]:
        key = tuple(args)
        self.calls.append((key, cwd))
        for prefix, exc in self.failures.items():
            if key[: len(prefix)] == prefix:
                raise exc
        stdout = ""
        for prefix, reply in self.replies.items():
            if key[: len(prefix)] == prefix:
                stdout = reply
                break
        return CompletedProcess(list(args), 0, stdout if capture_output else "", "")

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [args for args, _ in self.calls]


@pytest.fixture(autouse=True)
def _fresh_console() -> Iterator[None]:
    get_console_manager().reset()
    yield
    get_console_manager().reset()


@pytest.fixture(autouse=True)
def _reset_rzpm_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("rzpm")
    for handler in list(logger.handlers):
        if getattr(handler, "_rzpm_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def framework(tmp_path: Path) -> FrameworkInfo:
    """Return framework info whose library dir exposes a pkg-config directory."""

    lib_dir = tmp_path / "rizin" / "lib"
    (lib_dir / "pkgconfig").mkdir(parents=True)
    return FrameworkInfo(version="0.7.3", lib_dir=str(lib_dir))


@pytest.fixture
def config(tmp_path: Path) -> RzPmConfig:
    return RzPmConfig(
        site_dir=tmp_path / "site",
        install_prefix=tmp_path / "prefix",
        db_repo_url="https://example.invalid/rz-pm-db",
    )


def _write_manifest(directory: Path, name: str, body: str | None = None, *, version: str = "1.0") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(
        body if body is not None else MINIMAL_MANIFEST.format(name=name, version=version, summary=f"{name} plugin"),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def manifest_writer() -> Callable[..., Path]:
    """Return a helper writing a manifest file (minimal body by default)."""

    return _write_manifest


@pytest.fixture
def seed_catalog() -> Callable[..., Path]:
    """Return a helper that lays out an initialised catalog mirror without git."""

    def _seed(site_dir: Path, manifests: Mapping[str, str | None]) -> Path:
        mirror = site_dir / "rz-pm-db"
        (mirror / ".git").mkdir(parents=True, exist_ok=True)
        for name, body in manifests.items():
            _write_manifest(mirror / "db", name, body)
        return mirror

    return _seed
