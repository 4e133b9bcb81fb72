# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installable packages: fetch, build, install, and uninstall one unit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from .archive import ArchiveDownload, download_and_extract
from .backends import BuildBackend, BuildSite, backend_for
from .errors import MissingDevelopmentFilesError, RzPmError, UnsupportedSourceError
from .git import GitRepository
from .logging import info, ok
from .manifest import PackageManifest, PackageSource
from .process import CommandRunner, default_runner

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Package(Protocol):
    """Capabilities the site relies on when installing or removing a package."""

    @property
    def name(self) -> str: ...

    @property
    def version(self) -> str: ...

    @property
    def summary(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def source(self) -> PackageSource | None: ...

    def download(self, artifacts_root: Path) -> None: ...

    def build(self, site: BuildSite) -> None: ...

    def install(self, site: BuildSite) -> list[str]: ...

    def uninstall(self, site: BuildSite) -> None: ...


def artifacts_path(artifacts_root: Path, name: str, version: str) -> Path:
    """Return the per-version scratch directory of a package."""

    return artifacts_root / name / version


@dataclass(frozen=True, slots=True)
class CatalogPackage:
    """Package described by a manifest from the catalog or a local file."""

    manifest: PackageManifest
    runner: CommandRunner = field(default=default_runner, compare=False, repr=False)
    download_timeout: float = field(default=60.0, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def version(self) -> str:
        return self.manifest.version

    @property
    def summary(self) -> str:
        return self.manifest.summary

    @property
    def description(self) -> str:
        return self.manifest.description

    @property
    def source(self) -> PackageSource | None:
        return self.manifest.source

    def artifacts_path(self, artifacts_root: Path) -> Path:
        return artifacts_path(artifacts_root, self.name, self.version)

    def source_path(self, artifacts_root: Path) -> Path:
        """Return the directory the build runs in."""

        base = self.artifacts_path(artifacts_root)
        if self.source is None or not self.source.directory:
            return base
        return base / self.source.directory

    def download(self, artifacts_root: Path) -> None:
        """Fetch the package source into ``artifacts_root/<name>/<version>``.

        Raises:
            WrongHashError: If a tarball does not match its manifest digest.
            UnsafeArchiveError: If a tarball entry escapes the artifact path.
            UnsupportedSourceError: If the URL is neither a tarball nor git.
        """

        source = self.source
        if source is None:
            LOGGER.debug("package %s has no source; nothing to download", self.name)
            return
        destination = self.artifacts_path(artifacts_root)
        LOGGER.info("downloading package %s from %s", self.name, source.url)
        destination.mkdir(parents=True, exist_ok=True)

        if source.is_archive:
            info(f"Downloading {self.name} source archive...")
            download_and_extract(
                ArchiveDownload(
                    url=source.url,
                    expected_hash=source.content_hash or "",
                    timeout=self.download_timeout,
                ),
                destination,
            )
            info(f"Source code for {self.name} downloaded and extracted.")
        elif source.is_git:
            self._download_git(source, destination)
        else:
            raise UnsupportedSourceError(f"source URL {source.url} not supported! Use a .tar.gz/.tar/.git URL")

    def _download_git(self, source: PackageSource, destination: Path) -> None:
        project_path = destination / source.git_project_name
        if project_path.is_dir() and GitRepository.exists(project_path):
            GitRepository(project_path, runner=self.runner).pull(recurse_submodules=True)
        else:
            GitRepository.clone(source.url, project_path, recurse_submodules=True, runner=self.runner)

    def _backend(self, source: PackageSource) -> BuildBackend:
        return backend_for(source.build_system, runner=self.runner)

    def build(self, site: BuildSite) -> None:
        """Download when needed, then configure and compile the package.

        Raises:
            MissingDevelopmentFilesError: If the site exposes neither a
                pkg-config nor a CMake directory.
            MissingPrerequisiteError: If a required build tool is missing.
            UnsupportedBuildSystemError: If the manifest names another backend.
        """

        if site.pkg_config_dir is None and site.cmake_dir is None:
            raise MissingDevelopmentFilesError(
                "make sure rizin development files are installed (e.g. librizin-dev, rizin-devel, etc.)"
            )
        source = self.source
        if source is None:
            return
        source_dir = self.source_path(site.artifacts_dir)
        if source.is_git or not source_dir.is_dir():
            self.download(site.artifacts_dir)

        info(f"Building {self.name}...")
        backend = self._backend(source)
        backend.check_prerequisites()
        backend.build(source_dir, source.build_arguments, site)

    def install(self, site: BuildSite) -> list[str]:
        """Build and install the package, returning every file written."""

        self.build(site)
        source = self.source
        if source is None:
            return []
        info(f"Installing {self.name}...")
        files = self._backend(source).install(self.source_path(site.artifacts_dir))
        ok(f"Package {self.name} built and installed.")
        return files

    def uninstall(self, site: BuildSite) -> None:
        """Run the backend's own removal routine (legacy ledger entries only)."""

        source = self.source
        if source is None:
            return
        info(f"Uninstalling {self.name}...")
        self._backend(source).uninstall(self.source_path(site.artifacts_dir))


@dataclass(frozen=True, slots=True)
class InstalledStub:
    """Ledger entry for a package that the catalog no longer provides."""

    name: str
    rizin_version: str | None = None
    version: str = ""
    summary: str = ""
    description: str = ""

    @property
    def source(self) -> PackageSource | None:
        return None

    def _unavailable(self) -> RzPmError:
        return RzPmError(f"package {self.name} is no longer available in the catalog")

    def download(self, artifacts_root: Path) -> None:
        raise self._unavailable()

    def build(self, site: BuildSite) -> None:
        raise self._unavailable()

    def install(self, site: BuildSite) -> list[str]:
        raise self._unavailable()

    def uninstall(self, site: BuildSite) -> None:
        raise self._unavailable()


__all__ = ["CatalogPackage", "InstalledStub", "Package", "artifacts_path"]
