# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Local mirror of the remote package-manifest repository."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .errors import ManifestFormatError, PackageNotFoundError
from .git import DEFAULT_REMOTE, GitRepository, find_remote_ref
from .logging import warn
from .manifest import PackageManifest, parse_manifest_file
from .package import CatalogPackage
from .process import CommandRunner, default_runner
from .versioning import checkout_candidates, major_minor

LOGGER = logging.getLogger(__name__)

MANIFEST_SUBDIR: Final[str] = "db"


@dataclass(slots=True)
class Catalog:
    """Versioned catalog of package manifests mirrored at :attr:`path`.

    The mirror tracks the branch matching the installed framework version
    (``v<major.minor.patch>``, then ``v<major.minor>``, then ``v<major>``)
    and falls back to the repository default branch when none exists.
    """

    path: Path
    repo_url: str
    runner: CommandRunner = field(default=default_runner, repr=False)
    download_timeout: float = 60.0

    @classmethod
    def open(
        cls,
        path: Path,
        framework_version: str,
        *,
        repo_url: str,
        runner: CommandRunner | None = None,
        download_timeout: float = 60.0,
    ) -> Catalog:
        """Return the catalog at ``path``, cloning it when not yet initialised."""

        catalog = cls(
            path=path,
            repo_url=repo_url,
            runner=runner or default_runner,
            download_timeout=download_timeout,
        )
        if not catalog.initialized:
            path.mkdir(parents=True, exist_ok=True)
            catalog.refresh(framework_version)
        return catalog

    @property
    def initialized(self) -> bool:
        return GitRepository.exists(self.path)

    @property
    def manifests_dir(self) -> Path:
        return self.path / MANIFEST_SUBDIR

    def refresh(self, framework_version: str) -> None:
        """Clone or pull the mirror, then align it with ``framework_version``."""

        if not self.initialized:
            LOGGER.info("downloading package catalog from %s", self.repo_url)
            repo = GitRepository.clone(self.repo_url, self.path, runner=self.runner)
        else:
            LOGGER.info("updating package catalog in %s", self.path)
            repo = GitRepository(self.path, runner=self.runner)
            repo.pull()
        self._select_version(repo, framework_version)

    def _select_version(self, repo: GitRepository, framework_version: str) -> None:
        prefix = f"v{major_minor(framework_version)}"
        current = repo.current_branch()
        if current == prefix or current.startswith(f"{prefix}."):
            LOGGER.debug("catalog already tracks %s", current)
            return

        remote_ref = find_remote_ref(repo.remote_branches(), checkout_candidates(framework_version))
        if remote_ref is not None:
            branch = repo.checkout_remote_branch(remote_ref)
            LOGGER.info("catalog switched to %s", branch)
            return

        default = repo.default_branch()
        LOGGER.warning(
            "no catalog branch matches framework version %s; using default branch %s",
            framework_version,
            default,
        )
        if current != default:
            repo.checkout(default)
            repo.fast_forward(f"{DEFAULT_REMOTE}/{default}")

    def list_available(self) -> list[CatalogPackage]:
        """Return every parseable manifest; invalid files are skipped with a warning."""

        if not self.manifests_dir.is_dir():
            return []
        packages: list[CatalogPackage] = []
        for entry in sorted(self.manifests_dir.iterdir()):
            if entry.is_dir():
                continue
            try:
                manifest: PackageManifest = parse_manifest_file(entry)
            except (ManifestFormatError, OSError, UnicodeDecodeError) as exc:
                warn(f"could not read {entry}: {exc}")
                LOGGER.warning("skipping manifest %s: %s", entry, exc)
                continue
            packages.append(CatalogPackage(manifest, runner=self.runner, download_timeout=self.download_timeout))
        return packages

    def resolve(self, name: str) -> CatalogPackage:
        """Return the package called ``name``.

        Raises:
            PackageNotFoundError: If no manifest declares ``name``.
        """

        for package in self.list_available():
            if package.name == name:
                return package
        raise PackageNotFoundError(name)


__all__ = ["Catalog", "MANIFEST_SUBDIR"]
