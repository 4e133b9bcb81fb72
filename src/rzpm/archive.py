# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Download, verify, and extract source tarballs."""

from __future__ import annotations

import hashlib
import logging
import os
import tarfile
import tempfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import requests

from .errors import ArchiveError, UnsafeArchiveError, WrongHashError

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE: Final[int] = 64 * 1024
USER_AGENT: Final[str] = "rz-pm/1.0"


@dataclass(frozen=True, slots=True)
class ArchiveDownload:
    """Remote tarball expected to match ``expected_hash``."""

    url: str
    expected_hash: str
    timeout: float = 60.0

    @property
    def compressed(self) -> bool:
        return self.url.endswith(".gz")


def fetch_verified(download: ArchiveDownload, scratch_dir: Path) -> Path:
    """Stream ``download`` into a temporary file under ``scratch_dir`` and verify it.

    Args:
        download: Archive location and expected SHA-256 digest.
        scratch_dir: Directory receiving the temporary file.

    Returns:
        Path: Temporary file holding the verified archive. The caller owns it.

    Raises:
        WrongHashError: If the SHA-256 digest of the content differs from the
            expected value. The temporary file is removed before raising.
        requests.RequestException: If the HTTP request fails.
    """

    scratch_dir.mkdir(parents=True, exist_ok=True)
    hasher = hashlib.sha256()
    handle, name = tempfile.mkstemp(dir=scratch_dir, suffix=".download")
    tmp_path = Path(name)
    try:
        with os.fdopen(handle, "wb") as stream:
            with requests.get(
                download.url,
                stream=True,
                timeout=download.timeout,
                headers={"User-Agent": USER_AGENT},
            ) as response:
                response.raise_for_status()
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    hasher.update(chunk)
                    stream.write(chunk)
        actual = hasher.hexdigest()
        if actual != download.expected_hash.strip().lower():
            LOGGER.warning(
                "hash for %s does not match: expected %s, actual %s",
                download.url,
                download.expected_hash,
                actual,
            )
            raise WrongHashError(download.url, expected=download.expected_hash, actual=actual)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return tmp_path


def _destination_for(root: Path, member: tarfile.TarInfo) -> Path:
    """Return the cleaned destination of ``member`` or raise when it escapes ``root``."""

    root_str = os.path.normpath(str(root))
    target = os.path.normpath(os.path.join(root_str, member.name))
    if os.path.commonpath([root_str, target]) != root_str:
        raise UnsafeArchiveError(f"trying to extract a file outside the base path: {member.name}")
    return Path(target)


def extract_archive(archive_path: Path, destination: Path, *, compressed: bool) -> list[Path]:
    """Extract ``archive_path`` into ``destination`` entry by entry.

    Every entry is checked before anything is written, so a single escaping
    member rejects the whole archive. Directory modes are applied after the
    files they contain have been written.

    Returns:
        list[Path]: Regular files written, in archive order.

    Raises:
        UnsafeArchiveError: If any member resolves outside ``destination``.
        ArchiveError: If the file is not a readable tar (or gzip) archive.
    """

    root = destination.absolute()
    directory_modes: list[tuple[Path, int]] = []
    try:
        with tarfile.open(archive_path, "r:gz" if compressed else "r:") as archive:
            written = _extract_members(archive, root, directory_modes)
    except (tarfile.TarError, EOFError, zlib.error) as exc:
        raise ArchiveError(f"could not read archive {archive_path.name}: {exc}") from exc
    for directory, mode in reversed(directory_modes):
        directory.chmod(mode)
    return written


def _extract_members(
    archive: tarfile.TarFile,
    root: Path,
    directory_modes: list[tuple[Path, int]],
) -> list[Path]:
    written: list[Path] = []
    targets = [(member, _destination_for(root, member)) for member in archive.getmembers()]
    for member, target in targets:
        if member.isdir():
            target.mkdir(parents=True, exist_ok=True)
            directory_modes.append((target, member.mode))
        elif member.isreg():
            target.parent.mkdir(parents=True, exist_ok=True)
            source = archive.extractfile(member)
            if source is None:
                continue
            with source, target.open("wb") as sink:
                while chunk := source.read(CHUNK_SIZE):
                    sink.write(chunk)
            target.chmod(member.mode)
            written.append(target)
        else:
            LOGGER.debug("skipping non-regular archive entry %s", member.name)
    return written


def download_and_extract(download: ArchiveDownload, destination: Path) -> list[Path]:
    """Fetch, verify, and extract ``download`` into ``destination``."""

    archive_path = fetch_verified(download, destination)
    try:
        return extract_archive(archive_path, destination, compressed=download.compressed)
    finally:
        archive_path.unlink(missing_ok=True)


__all__ = [
    "ArchiveDownload",
    "download_and_extract",
    "extract_archive",
    "fetch_verified",
]
