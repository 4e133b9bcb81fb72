# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for manifest parsing rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from rzpm.errors import ManifestFormatError
from rzpm.manifest import BuildSystem, parse_manifest, parse_manifest_file

TARBALL_MANIFEST = """\
name: rz-ghidra
version: 0.10
summary: Ghidra decompiler integration
description: |
  Deep ghidra integration for rizin.
source:
  url: https://example.invalid/rz-ghidra-0.10.tar.gz
  hash: 4b5a1f0e
  build_system: meson
  build_arguments:
    - -Duse_sys_pugixml=disabled
    - -Dbuildtype=release
  directory: rz-ghidra-0.10
"""


def test_parses_full_tarball_manifest() -> None:
    manifest = parse_manifest(TARBALL_MANIFEST)

    assert manifest.name == "rz-ghidra"
    assert manifest.version == "0.10"
    assert manifest.description.startswith("Deep ghidra")
    source = manifest.source
    assert source is not None
    assert source.content_hash == "4b5a1f0e"
    assert source.build_system == BuildSystem.MESON.value
    assert source.build_arguments == ("-Duse_sys_pugixml=disabled", "-Dbuildtype=release")
    assert source.directory == "rz-ghidra-0.10"
    assert source.is_archive
    assert source.is_gzip
    assert not source.is_git


def test_minimal_manifest_is_source_less() -> None:
    manifest = parse_manifest("name: rz-meta\nversion: 1.0\nsummary: metadata only\n")

    assert manifest.source is None
    assert manifest.description == ""


def test_git_source_needs_no_hash() -> None:
    manifest = parse_manifest(
        "name: rz-x\nversion: 1\nsummary: s\n"
        "source:\n  url: https://github.com/rizinorg/rz-x.git\n  build_system: cmake\n"
    )

    assert manifest.source is not None
    assert manifest.source.is_git
    assert manifest.source.content_hash is None
    assert manifest.source.git_project_name == "rz-x"


@pytest.mark.parametrize(
    ("document", "message"),
    [
        ("version: 1\nsummary: s\n", "mandatory"),
        ("name: x\nsummary: s\n", "mandatory"),
        ("name: x\nversion: 1\n", "mandatory"),
        (
            "name: x\nversion: 1\nsummary: s\n"
            "source:\n  url: https://h/x.git\n  hash: abc\n  build_system: meson\n",
            "should not be used for git",
        ),
        (
            "name: x\nversion: 1\nsummary: s\n"
            "source:\n  url: https://h/x.tar.gz\n  hash: ''\n  build_system: meson\n",
            "mandatory for non-git",
        ),
        (
            "name: x\nversion: 1\nsummary: s\nsource:\n  url: https://h/x.tar.gz\n  hash: abc\n",
            "Build System are mandatory",
        ),
        ("- just\n- a list\n", "mapping"),
        ("name: [unterminated\n", "invalid YAML"),
    ],
)
def test_invalid_manifests_are_rejected(document: str, message: str) -> None:
    with pytest.raises(ManifestFormatError, match=message):
        parse_manifest(document)


def test_file_errors_name_the_file(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("name: x\n", encoding="utf-8")

    with pytest.raises(ManifestFormatError) as excinfo:
        parse_manifest_file(path)

    assert excinfo.value.path == path
    assert str(path) in str(excinfo.value)
    assert "wrong package file format" in str(excinfo.value)
