# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Package manifest models and YAML parsing."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Final

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ManifestFormatError

GIT_SUFFIX: Final[str] = ".git"
ARCHIVE_SUFFIXES: Final[tuple[str, ...]] = (".tar.gz", ".tar")


class BuildSystem(str, Enum):
    """Build systems a package source may declare."""

    MESON = "meson"
    CMAKE = "cmake"


class PackageSource(BaseModel):
    """Where and how to fetch and build a package."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    content_hash: str | None = Field(default=None, alias="hash")
    build_system: str
    build_arguments: tuple[str, ...] = ()
    directory: str = ""

    @property
    def is_git(self) -> bool:
        """Return ``True`` when the URL points to a git repository."""

        return self.url.endswith(GIT_SUFFIX)

    @property
    def is_archive(self) -> bool:
        """Return ``True`` when the URL points to a supported tarball."""

        return self.url.endswith(ARCHIVE_SUFFIXES)

    @property
    def is_gzip(self) -> bool:
        return self.url.endswith(".gz")

    @property
    def git_project_name(self) -> str:
        """Return the last URL path component without its ``.git`` suffix."""

        return self.url.rstrip("/").rsplit("/", 1)[-1].removesuffix(GIT_SUFFIX)


class PackageManifest(BaseModel):
    """Descriptor of one installable package."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    summary: str
    description: str = ""
    source: PackageSource | None = None


def _non_empty(mapping: Mapping[str, Any], key: str) -> bool:
    value = mapping.get(key)
    return isinstance(value, str) and bool(value.strip())


def manifest_from_mapping(document: object, *, path: Path | None = None) -> PackageManifest:
    """Validate ``document`` and return the corresponding :class:`PackageManifest`.

    Args:
        document: Decoded YAML document.
        path: Optional source path used in error messages.

    Returns:
        PackageManifest: Validated manifest.

    Raises:
        ManifestFormatError: If mandatory fields are missing or the source
            block violates the hash/git rules.
    """

    if not isinstance(document, Mapping):
        raise ManifestFormatError("document must be a mapping", path=path)
    if not all(_non_empty(document, key) for key in ("name", "version", "summary")):
        raise ManifestFormatError("name, version, and summary are mandatory", path=path)

    data: dict[str, Any] = dict(document)
    source = data.get("source")
    if source is not None:
        if not isinstance(source, Mapping):
            raise ManifestFormatError("source must be a mapping", path=path)
        if not _non_empty(source, "url") or not _non_empty(source, "build_system"):
            raise ManifestFormatError("Source URL and Build System are mandatory", path=path)
        source = dict(source)
        content_hash = source.get("hash") or None
        source["hash"] = content_hash
        if str(source["url"]).endswith(GIT_SUFFIX):
            if content_hash is not None:
                raise ManifestFormatError("Source Hash should not be used for git plugins", path=path)
        elif content_hash is None:
            raise ManifestFormatError("Source Hash is mandatory for non-git plugins", path=path)
        if source.get("build_arguments") is None:
            source.pop("build_arguments", None)
        if source.get("directory") is None:
            source.pop("directory", None)
        data["source"] = source
    if data.get("description") is None:
        data.pop("description", None)

    try:
        return PackageManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestFormatError(str(exc), path=path) from exc


def parse_manifest(text: str, *, path: Path | None = None) -> PackageManifest:
    """Parse manifest YAML ``text``.

    Scalars are loaded as strings so versions such as ``0.10`` keep their
    literal spelling.
    """

    try:
        # BaseLoader builds plain str/list/dict values only.
        document = yaml.load(text, Loader=yaml.BaseLoader)  # nosec B506
    except yaml.YAMLError as exc:
        raise ManifestFormatError(f"invalid YAML: {exc}", path=path) from exc
    return manifest_from_mapping(document, path=path)


def parse_manifest_file(path: Path) -> PackageManifest:
    """Read and parse the manifest stored at ``path``."""

    return parse_manifest(path.read_text(encoding="utf-8"), path=path)


__all__ = [
    "BuildSystem",
    "PackageManifest",
    "PackageSource",
    "manifest_from_mapping",
    "parse_manifest",
    "parse_manifest_file",
]
