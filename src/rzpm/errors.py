# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Exceptions raised by package lifecycle operations."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class RzPmError(RuntimeError):
    """Base class for every failure surfaced by the package lifecycle engine."""


class ManifestFormatError(RzPmError):
    """Raised when a manifest misses mandatory fields or violates source rules."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        prefix = f"{path}: " if path is not None else ""
        super().__init__(f"{prefix}wrong package file format: {message}")
        self.path = path


class WrongHashError(RzPmError):
    """Raised when a downloaded archive does not match the manifest digest."""

    def __init__(self, url: str, *, expected: str, actual: str) -> None:
        super().__init__(f"hash mismatch for {url}: expected {expected}, got {actual}")
        self.url = url
        self.expected = expected
        self.actual = actual


class ArchiveError(RzPmError):
    """Raised when a verified download cannot be read as a tar archive."""


class UnsafeArchiveError(ArchiveError):
    """Raised when an archive entry would be extracted outside its destination."""


class MissingPrerequisiteError(RzPmError):
    """Raised when an external build tool is not available on ``PATH``."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(f"{hint} Moreover {message}" if hint else message)
        self.hint = hint


class MissingDevelopmentFilesError(RzPmError):
    """Raised when the framework exposes neither a pkg-config nor a CMake directory."""


class UnsupportedSourceError(RzPmError):
    """Raised when a package source URL is neither an archive nor a git repository."""


class UnsupportedBuildSystemError(RzPmError):
    """Raised when a manifest names a build system outside the supported set."""

    def __init__(self, build_system: str) -> None:
        super().__init__(f"unsupported build system '{build_system}'")
        self.build_system = build_system


class BuildSystemError(RzPmError):
    """Raised when a build, install, or introspection step fails."""


class SiteLockedError(RzPmError):
    """Raised when another process already owns the site directory."""

    def __init__(self, lock_path: Path) -> None:
        super().__init__(f"site directory is already locked ({lock_path})")
        self.lock_path = lock_path


class FrameworkNotFoundError(RzPmError):
    """Raised when the framework cannot be queried for its version and layout."""


class PackageNotFoundError(RzPmError):
    """Raised when the catalog has no manifest with the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"package '{name}' not found")
        self.name = name


class PackageStateError(RzPmError):
    """Raised when an operation is not valid for the package's ledger state."""

    def __init__(self, message: str, *, name: str) -> None:
        super().__init__(message)
        self.name = name


class PackageAlreadyInstalledError(PackageStateError):
    """Raised when installing a package that the ledger already records."""

    def __init__(self, name: str) -> None:
        super().__init__(f"package {name} already installed", name=name)


class PackageNotInstalledError(PackageStateError):
    """Raised when uninstalling a package absent from the ledger."""

    def __init__(self, name: str) -> None:
        super().__init__(f"package {name} not installed", name=name)


class NoArtifactsError(PackageStateError):
    """Raised when cleaning a package that has no build artifacts."""

    def __init__(self, name: str) -> None:
        super().__init__(f"package {name} does not have any build artifacts", name=name)


class UpgradeError(RzPmError):
    """Raised after upgrading every installed package when some of them failed."""

    def __init__(self, failed: Sequence[str]) -> None:
        self.failed = tuple(sorted(failed))
        super().__init__(f"could not upgrade the following packages: {', '.join(self.failed)}")


__all__ = [
    "ArchiveError",
    "BuildSystemError",
    "FrameworkNotFoundError",
    "ManifestFormatError",
    "MissingDevelopmentFilesError",
    "MissingPrerequisiteError",
    "NoArtifactsError",
    "PackageAlreadyInstalledError",
    "PackageNotFoundError",
    "PackageNotInstalledError",
    "PackageStateError",
    "RzPmError",
    "SiteLockedError",
    "UnsafeArchiveError",
    "UnsupportedBuildSystemError",
    "UnsupportedSourceError",
    "UpgradeError",
    "WrongHashError",
]
