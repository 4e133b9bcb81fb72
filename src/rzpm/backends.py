# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build-system backends that configure, compile, install, and uninstall packages."""

from __future__ import annotations

import json
import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import ClassVar, Final, Protocol

from .errors import BuildSystemError, MissingPrerequisiteError, UnsupportedBuildSystemError
from .manifest import BuildSystem
from .process import CommandRunner, SubprocessExecutionError, default_runner, find_executable

LOGGER = logging.getLogger(__name__)

BUILD_SUBDIR: Final[str] = "build"
CMAKE_INSTALL_MANIFEST: Final[str] = "install_manifest.txt"
WINDOWS_BUILD_HINT: Final[str] = (
    "To build Rizin packages on Windows you need to enable the 'Developer Command Prompt for "
    "Visual Studio'. Follow the instructions at "
    "https://learn.microsoft.com/en-us/visualstudio/ide/reference/command-prompt-powershell "
    "to install and execute it."
)

Which = Callable[[str], str | None]


class BuildSite(Protocol):
    """Paths a backend needs from the site it installs into."""

    @property
    def artifacts_dir(self) -> Path: ...

    @property
    def pkg_config_dir(self) -> Path | None: ...

    @property
    def cmake_dir(self) -> Path | None: ...

    @property
    def install_prefix(self) -> Path: ...


def remediation_hint() -> str | None:
    """Return the platform-specific build environment hint, if any."""

    return WINDOWS_BUILD_HINT if sys.platform.startswith("win") else None


class BuildBackend(ABC):
    """Strategy object driving one build system inside a package source tree."""

    build_system: ClassVar[BuildSystem]

    def __init__(self, *, runner: CommandRunner | None = None, which: Which | None = None) -> None:
        self._runner = runner or default_runner
        self._which = which or find_executable

    def _require(self, message: str, *tools: str) -> None:
        """Raise :class:`MissingPrerequisiteError` unless any of ``tools`` is on PATH."""

        if not any(self._which(tool) for tool in tools):
            raise MissingPrerequisiteError(message, hint=remediation_hint())

    def _run(self, args: Sequence[str], *, cwd: Path, failure: str, capture: bool = False) -> str:
        LOGGER.info("running %s in %s", " ".join(args), cwd)
        try:
            completed = self._runner(list(args), cwd=cwd, capture_output=capture)
        except FileNotFoundError as exc:
            raise MissingPrerequisiteError(str(exc), hint=remediation_hint()) from exc
        except SubprocessExecutionError as exc:
            raise BuildSystemError(f"{failure}: {exc}") from exc
        return completed.stdout or ""

    @abstractmethod
    def check_prerequisites(self) -> None:
        """Ensure the tools this backend invokes are installed."""

    @abstractmethod
    def build(self, source_dir: Path, arguments: Sequence[str], site: BuildSite) -> None:
        """Configure and compile the package in ``source_dir``."""

    @abstractmethod
    def install(self, source_dir: Path) -> list[str]:
        """Install a previously built package and return the files written."""

    @abstractmethod
    def uninstall(self, source_dir: Path) -> None:
        """Remove an installed package without a tracked file list."""


class MesonBackend(BuildBackend):
    """Drive ``meson setup``/``compile``/``install`` and introspect installed files."""

    build_system = BuildSystem.MESON

    def check_prerequisites(self) -> None:
        self._require("make sure 'meson' is installed and in PATH", "meson")
        self._require("make sure either 'cmake' or `pkg-config` are installed and in PATH", "pkg-config", "cmake")

    def build(self, source_dir: Path, arguments: Sequence[str], site: BuildSite) -> None:
        args = ["meson", "setup", *arguments, f"--prefix={site.install_prefix}"]
        if site.pkg_config_dir is not None:
            args.append(f"--pkg-config-path={site.pkg_config_dir}")
        if site.cmake_dir is not None:
            args.append(f"--cmake-prefix-path={site.cmake_dir}")
        if (source_dir / BUILD_SUBDIR / "meson-private").is_dir():
            args.append("--reconfigure")
        args.append(BUILD_SUBDIR)
        self._run(args, cwd=source_dir, failure="meson setup failed")
        self._run(["meson", "compile", "-C", BUILD_SUBDIR], cwd=source_dir, failure="meson compile failed")

    def install(self, source_dir: Path) -> list[str]:
        self._run(["meson", "install", "-C", BUILD_SUBDIR], cwd=source_dir, failure="meson install failed")
        output = self._run(
            ["meson", "introspect", "--installed", BUILD_SUBDIR],
            cwd=source_dir,
            failure="failed to introspect meson build",
            capture=True,
        )
        try:
            mapping = json.loads(output)
        except json.JSONDecodeError as exc:
            raise BuildSystemError(f"failed to parse meson introspect output: {exc}") from exc
        if not isinstance(mapping, dict):
            raise BuildSystemError("failed to parse meson introspect output: expected a JSON object")
        return [str(destination) for destination in mapping.values()]

    def uninstall(self, source_dir: Path) -> None:
        self._run(["ninja", "uninstall", "-C", BUILD_SUBDIR], cwd=source_dir, failure="ninja uninstall failed")


class CMakeBackend(BuildBackend):
    """Drive ``cmake`` configure/build/install and read its install manifest."""

    build_system = BuildSystem.CMAKE

    def check_prerequisites(self) -> None:
        self._require("make sure 'cmake' is installed and in PATH", "cmake")
        self._require("make sure `pkg-config` is installed and in PATH", "pkg-config")

    def build(self, source_dir: Path, arguments: Sequence[str], site: BuildSite) -> None:
        args = ["cmake", *arguments, f"-DCMAKE_INSTALL_PREFIX={site.install_prefix}"]
        if site.cmake_dir is not None:
            args.append(f"-DCMAKE_PREFIX_PATH={site.cmake_dir}")
        args.extend(["-B", BUILD_SUBDIR])
        self._run(args, cwd=source_dir, failure="cmake configure failed")
        self._run(["cmake", "--build", BUILD_SUBDIR], cwd=source_dir, failure="cmake build failed")

    def install(self, source_dir: Path) -> list[str]:
        self._run(["cmake", "--install", BUILD_SUBDIR], cwd=source_dir, failure="cmake install failed")
        return self._read_manifest(source_dir)

    def uninstall(self, source_dir: Path) -> None:
        for entry in self._read_manifest(source_dir):
            Path(entry).unlink(missing_ok=True)

    @staticmethod
    def _read_manifest(source_dir: Path) -> list[str]:
        manifest = source_dir / BUILD_SUBDIR / CMAKE_INSTALL_MANIFEST
        try:
            text = manifest.read_text(encoding="utf-8")
        except OSError as exc:
            raise BuildSystemError(f"could not open {CMAKE_INSTALL_MANIFEST}: {exc}") from exc
        return [line for line in text.splitlines() if line]


_BACKENDS: Final[dict[str, type[BuildBackend]]] = {
    BuildSystem.MESON.value: MesonBackend,
    BuildSystem.CMAKE.value: CMakeBackend,
}


def backend_for(
    build_system: str,
    *,
    runner: CommandRunner | None = None,
    which: Which | None = None,
) -> BuildBackend:
    """Return the backend implementing ``build_system``.

    Raises:
        UnsupportedBuildSystemError: If ``build_system`` is not meson or cmake.
    """

    backend_cls = _BACKENDS.get(build_system)
    if backend_cls is None:
        LOGGER.warning("build system %s is not supported yet", build_system)
        raise UnsupportedBuildSystemError(build_system)
    return backend_cls(runner=runner, which=which)


__all__ = [
    "BUILD_SUBDIR",
    "BuildBackend",
    "BuildSite",
    "CMakeBackend",
    "MesonBackend",
    "backend_for",
    "remediation_hint",
]
