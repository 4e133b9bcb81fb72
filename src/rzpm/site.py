# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installation site: lock, catalog freshness, ledger, and package lifecycle."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from types import TracebackType
from typing import Final

import requests

from .catalog import Catalog
from .config import RzPmConfig, load_config
from .errors import (
    NoArtifactsError,
    PackageAlreadyInstalledError,
    PackageNotInstalledError,
    RzPmError,
    SiteLockedError,
    UpgradeError,
)
from .framework import FrameworkInfo, FrameworkProbe, query_framework
from .git import GitRepository
from .ledger import InstalledRecord, Ledger
from .lock import SiteLock
from .logging import info, ok, warn
from .manifest import parse_manifest_file
from .package import CatalogPackage, InstalledStub, Package, artifacts_path
from .process import CommandRunner, SubprocessExecutionError, default_runner
from .versioning import is_compatible

LOGGER = logging.getLogger(__name__)

CATALOG_SUBDIR: Final[str] = "rz-pm-db"
ARTIFACTS_SUBDIR: Final[str] = "artifacts"
LEDGER_FILENAME: Final[str] = "installed"

_UPGRADE_FAILURES: Final[tuple[type[BaseException], ...]] = (
    RzPmError,
    OSError,
    SubprocessExecutionError,
    requests.RequestException,
)


def _remove_path(path: Path) -> None:
    """Remove ``path`` from disk; missing entries are ignored."""

    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
    else:
        try:
            path.unlink(missing_ok=True)
        except PermissionError:
            warn(f"Permission denied removing {path}")


def lock_guidance(lock_path: Path) -> list[str]:
    """Return the operator guidance printed when a site is already locked."""

    return [
        "Site directory is already locked, another instance of rz-pm might be running or the site directory is locked.",
        "If you are sure that no other instance is running, you can remove the lock file manually.",
        f"Lock file is located at: {lock_path}",
    ]


class Site:
    """One installation directory and the state it owns.

    Use :meth:`open` to construct a site; it holds the inter-process lock
    until :meth:`close` (or the end of a ``with`` block).
    """

    def __init__(
        self,
        path: Path,
        *,
        config: RzPmConfig,
        framework: FrameworkInfo,
        catalog: Catalog,
        ledger: Ledger,
        lock: SiteLock,
        runner: CommandRunner,
    ) -> None:
        self.path = path
        self.config = config
        self.framework = framework
        self.catalog = catalog
        self.ledger = ledger
        self._lock = lock
        self._runner = runner

    @classmethod
    def open(
        cls,
        path: Path | None = None,
        *,
        refresh_catalog: bool = False,
        config: RzPmConfig | None = None,
        probe: FrameworkProbe | None = None,
        runner: CommandRunner | None = None,
    ) -> Site:
        """Create the site tree, take the lock, and load framework, ledger, and catalog.

        Args:
            path: Site directory; defaults to ``config.site_dir``.
            refresh_catalog: Pull the catalog even when already initialised.
            config: Settings; resolved from the environment when omitted.
            probe: Framework introspection callable; runs the framework when omitted.
            runner: Command runner used for git and build tools.

        Raises:
            SiteLockedError: If another process holds the site lock.
        """

        settings = config or load_config()
        root = path or settings.site_dir
        catalog_dir = root / CATALOG_SUBDIR
        for directory in (root, catalog_dir, root / ARTIFACTS_SUBDIR):
            directory.mkdir(parents=True, exist_ok=True)

        lock = SiteLock(root)
        try:
            lock.acquire()
        except SiteLockedError:
            for line in lock_guidance(lock.path):
                warn(line)
            raise

        active_runner = runner or default_runner
        try:
            framework = (probe or (lambda: query_framework(settings.framework_executable)))()
            ledger = Ledger.load(root / LEDGER_FILENAME, framework.version)
            was_initialized = GitRepository.exists(catalog_dir)
            catalog = Catalog.open(
                catalog_dir,
                framework.version,
                repo_url=settings.db_repo_url,
                runner=active_runner,
                download_timeout=settings.download_timeout,
            )
            if refresh_catalog and was_initialized:
                catalog.refresh(framework.version)
        except BaseException:
            lock.release()
            raise

        return cls(
            root,
            config=settings,
            framework=framework,
            catalog=catalog,
            ledger=ledger,
            lock=lock,
            runner=active_runner,
        )

    def close(self) -> None:
        """Release the site lock.

        Raises:
            RuntimeError: If the site does not hold its lock.
        """

        if not self._lock.locked:
            raise RuntimeError("site lock is not held, cannot close")
        self._lock.release()

    def __enter__(self) -> Site:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def locked(self) -> bool:
        return self._lock.locked

    @property
    def artifacts_dir(self) -> Path:
        return self.path / ARTIFACTS_SUBDIR

    @property
    def pkg_config_dir(self) -> Path | None:
        return self.framework.pkg_config_dir

    @property
    def cmake_dir(self) -> Path | None:
        return self.framework.cmake_dir

    @property
    def install_prefix(self) -> Path:
        return self.config.install_prefix

    @property
    def framework_version(self) -> str:
        return self.framework.version

    @property
    def ledger_path(self) -> Path:
        return self.path / LEDGER_FILENAME

    def list_available(self) -> list[Package]:
        """Return catalog packages plus installed packages the catalog dropped."""

        packages: list[Package] = list(self.catalog.list_available())
        known = {package.name for package in packages}
        for record in self.ledger:
            if record.name not in known:
                packages.append(self._stub(record))
        return packages

    def list_installed(self) -> list[Package]:
        """Return installed packages, preferring current catalog metadata."""

        available = {package.name: package for package in self.catalog.list_available()}
        installed: list[Package] = []
        for record in self.ledger:
            installed.append(available.get(record.name) or self._stub(record))
        return installed

    def search(self, pattern: str) -> list[Package]:
        """Return available packages whose name matches the regular expression ``pattern``.

        Raises:
            ValueError: If ``pattern`` is not a valid regular expression.
        """

        try:
            expression = re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"{pattern!r} is not a valid regex: {exc}") from exc
        return [package for package in self.list_available() if expression.search(package.name)]

    def get_package(self, name: str) -> CatalogPackage:
        return self.catalog.resolve(name)

    def package_from_file(self, path: Path) -> CatalogPackage:
        """Return a package described by the local manifest at ``path``."""

        return CatalogPackage(
            parse_manifest_file(path),
            runner=self._runner,
            download_timeout=self.config.download_timeout,
        )

    def is_installed(self, package: Package) -> bool:
        return package.name in self.ledger

    def get_installed(self, name: str) -> InstalledRecord:
        """Return the ledger record for ``name``.

        Raises:
            PackageNotInstalledError: If the ledger has no such record.
        """

        record = self.ledger.get(name)
        if record is None:
            raise PackageNotInstalledError(name)
        return record

    def is_compatible(self, record: InstalledRecord) -> bool:
        """Return ``True`` when ``record`` was built for the current framework minor."""

        return is_compatible(record.rizin_version, self.framework_version)

    def install(self, package: Package) -> InstalledRecord:
        """Build and install ``package`` and record the files it wrote.

        Raises:
            PackageAlreadyInstalledError: If the ledger already has the package.
        """

        if self.is_installed(package):
            raise PackageAlreadyInstalledError(package.name)

        files = package.install(self)
        record = InstalledRecord(
            name=package.name,
            files=tuple(files),
            rizin_version=self.framework.major_minor,
        )
        self.ledger.add(record)
        self.ledger.save()
        LOGGER.info("installed %s (%d files)", package.name, len(record.files or ()))
        return record

    def uninstall(self, package: Package) -> None:
        """Remove ``package``'s files and its ledger record.

        Raises:
            PackageNotInstalledError: If the ledger has no record of the package.
        """

        record = self.get_installed(package.name)
        if record.files is None:
            package.uninstall(self)
        else:
            info(f"Uninstalling {package.name}...")
            for entry in record.files:
                _remove_path(Path(entry))

        self.ledger.remove(package.name)
        self.ledger.save()
        ok(f"Package {package.name} uninstalled.")

    def upgrade(self, name: str) -> None:
        """Uninstall and reinstall ``name`` from the current catalog."""

        self.get_installed(name)
        package = self.catalog.resolve(name)
        self.uninstall(package)
        self.install(package)

    def upgrade_all(self) -> list[str]:
        """Upgrade every installed package, continuing past individual failures.

        Returns:
            list[str]: Names upgraded successfully.

        Raises:
            UpgradeError: Naming every package that failed, after all were attempted.
        """

        upgraded: list[str] = []
        failed: list[str] = []
        for record in self.ledger:
            LOGGER.info("upgrading %s", record.name)
            try:
                self.upgrade(record.name)
            except _UPGRADE_FAILURES as exc:
                LOGGER.warning("upgrade of %s failed: %s", record.name, exc)
                warn(f"Could not upgrade {record.name}: {exc}")
                failed.append(record.name)
                continue
            upgraded.append(record.name)
        if failed:
            raise UpgradeError(failed)
        return upgraded

    def clean(self, package: Package) -> None:
        """Delete the package's download/build scratch directory.

        Raises:
            NoArtifactsError: If no artifacts exist for the package version.
        """

        target = artifacts_path(self.artifacts_dir, package.name, package.version)
        if not target.exists():
            raise NoArtifactsError(package.name)
        shutil.rmtree(target)
        LOGGER.info("removed artifacts %s", target)

    def remove(self) -> None:
        """Delete the whole site directory, including the lock marker."""

        shutil.rmtree(self.path)

    def _stub(self, record: InstalledRecord) -> InstalledStub:
        return InstalledStub(name=record.name, rizin_version=record.rizin_version)


__all__ = [
    "ARTIFACTS_SUBDIR",
    "CATALOG_SUBDIR",
    "LEDGER_FILENAME",
    "Site",
    "lock_guidance",
]
