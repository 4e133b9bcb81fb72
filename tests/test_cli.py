# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI tests for the rz-pm commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rzpm.cli.app import app
from rzpm.lock import LOCK_FILENAME

CURRENT = ("git", "rev-parse", "--abbrev-ref", "HEAD")


@pytest.fixture
def site_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, framework, fake_runner, seed_catalog) -> Path:
    for variable in ("RZPM_SITEDIR", "RZPM_DEBUG", "RZPM_DB_REPO_URL"):
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.setenv("RZPM_INSTALL_PREFIX", str(tmp_path / "prefix"))
    monkeypatch.setattr("rzpm.site.query_framework", lambda executable: framework)
    monkeypatch.setattr("rzpm.site.default_runner", fake_runner)
    fake_runner.replies[CURRENT] = "v0.7"
    root = tmp_path / "site"
    seed_catalog(root, {"jsdec": None, "rz-ghidra": None})
    return root


def _invoke(site_dir: Path, *args: str):
    return CliRunner().invoke(app, ["--site-dir", str(site_dir), "--no-emoji", *args])


def _ledger(site_dir: Path) -> list[dict[str, object]]:
    return json.loads((site_dir / "installed").read_text(encoding="utf-8"))


def test_list_available(site_dir: Path) -> None:
    result = _invoke(site_dir, "list")

    assert result.exit_code == 0
    assert "jsdec: jsdec plugin" in result.stdout
    assert "rz-ghidra: rz-ghidra plugin" in result.stdout
    assert not (site_dir / LOCK_FILENAME).exists()


def test_list_installed_flags_incompatible_packages(site_dir: Path) -> None:
    (site_dir / "installed").write_text(
        json.dumps(
            [
                {"name": "jsdec", "files": [], "rizin_version": "0.6"},
                {"name": "rz-ghidra", "files": [], "rizin_version": "0.7"},
            ]
        ),
        encoding="utf-8",
    )

    result = _invoke(site_dir, "list", "installed")

    assert result.exit_code == 0
    assert "jsdec was built for rizin 0.6" in result.stdout
    assert "rz-ghidra was built" not in result.stdout


def test_search_and_bad_pattern(site_dir: Path) -> None:
    result = _invoke(site_dir, "search", "ghidra")
    assert result.exit_code == 0
    assert "rz-ghidra" in result.stdout
    assert "jsdec" not in result.stdout

    bad = _invoke(site_dir, "search", "([")
    assert bad.exit_code == 1
    assert "not a valid regex" in bad.stdout


def test_info_shows_metadata(site_dir: Path) -> None:
    result = _invoke(site_dir, "info", "jsdec")

    assert result.exit_code == 0
    assert "Name: jsdec" in result.stdout
    assert "Installed: no" in result.stdout


def test_unknown_package_exits_with_error(site_dir: Path) -> None:
    result = _invoke(site_dir, "install", "missing")

    assert result.exit_code == 1
    assert "package 'missing' not found" in result.stdout
    assert not (site_dir / LOCK_FILENAME).exists()


def test_install_from_file_then_uninstall(site_dir: Path, manifest_writer, tmp_path: Path) -> None:
    manifest = manifest_writer(tmp_path / "local", "my-plugin", version="0.1")

    installed = _invoke(site_dir, "install", "--file", str(manifest))
    assert installed.exit_code == 0, installed.stdout
    assert _ledger(site_dir) == [{"name": "my-plugin", "files": [], "rizin_version": "0.7"}]

    again = _invoke(site_dir, "install", "--file", str(manifest))
    assert again.exit_code == 1
    assert "already installed" in again.stdout

    removed = _invoke(site_dir, "uninstall", "my-plugin")
    assert removed.exit_code == 0
    assert _ledger(site_dir) == []


def test_uninstall_not_installed(site_dir: Path) -> None:
    result = _invoke(site_dir, "uninstall", "jsdec")

    assert result.exit_code == 1
    assert "package jsdec not installed" in result.stdout


def test_install_requires_a_target(site_dir: Path) -> None:
    result = _invoke(site_dir, "install")
    assert result.exit_code == 2


def test_locked_site_prints_guidance(site_dir: Path) -> None:
    (site_dir / LOCK_FILENAME).touch()

    result = _invoke(site_dir, "list")

    assert result.exit_code == 1
    assert "already locked" in result.stdout
    assert "remove the lock file manually" in result.stdout
    assert (site_dir / LOCK_FILENAME).exists()


def test_update_pulls_catalog(site_dir: Path, fake_runner) -> None:
    result = _invoke(site_dir, "update")

    assert result.exit_code == 0
    assert ("git", "pull", "origin") in fake_runner.commands
    assert "2 packages" in result.stdout


def test_upgrade_all_with_nothing_installed(site_dir: Path) -> None:
    result = _invoke(site_dir, "upgrade", "--all")

    assert result.exit_code == 0


def test_upgrade_reports_failed_packages(site_dir: Path) -> None:
    (site_dir / "installed").write_text(json.dumps(["vanished"]), encoding="utf-8")

    result = _invoke(site_dir, "upgrade", "--all")

    assert result.exit_code == 1
    assert "could not upgrade the following packages: vanished" in result.stdout


def test_clean_without_artifacts(site_dir: Path) -> None:
    result = _invoke(site_dir, "clean", "jsdec")

    assert result.exit_code == 1
    assert "does not have any build artifacts" in result.stdout


def test_delete_removes_site(site_dir: Path) -> None:
    result = _invoke(site_dir, "delete", "--yes")

    assert result.exit_code == 0
    assert not site_dir.exists()


def test_delete_can_be_aborted(site_dir: Path) -> None:
    result = CliRunner().invoke(app, ["--site-dir", str(site_dir), "--no-emoji", "delete"], input="n\n")

    assert result.exit_code == 1
    assert site_dir.exists()
    assert not (site_dir / LOCK_FILENAME).exists()


def test_version_flag() -> None:
    result = CliRunner().invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.stdout.startswith("rz-pm ")
