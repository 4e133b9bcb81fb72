# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from rzpm.config import DEFAULT_DB_REPO_URL, ConfigError, default_site_dir, load_config


def test_site_dir_prefers_explicit_override(tmp_path: Path) -> None:
    env = {"RZPM_SITEDIR": str(tmp_path / "custom"), "XDG_DATA_HOME": str(tmp_path / "xdg")}
    assert default_site_dir(env) == tmp_path / "custom"


def test_site_dir_follows_xdg_data_home(tmp_path: Path) -> None:
    assert default_site_dir({"XDG_DATA_HOME": str(tmp_path)}) == tmp_path / "rz-pm" / "site"


def test_load_config_reads_environment(tmp_path: Path) -> None:
    env = {
        "RZPM_SITEDIR": str(tmp_path / "site"),
        "RZPM_DB_REPO_URL": "https://example.invalid/db",
        "RZPM_INSTALL_PREFIX": str(tmp_path / "prefix"),
        "RZPM_RIZIN": "/opt/rizin/bin/rizin",
        "RZPM_DEBUG": "yes",
    }

    config = load_config(env)

    assert config.site_dir == tmp_path / "site"
    assert config.db_repo_url == "https://example.invalid/db"
    assert config.install_prefix == tmp_path / "prefix"
    assert config.framework_executable == "/opt/rizin/bin/rizin"
    assert config.debug is True


def test_load_config_defaults(tmp_path: Path) -> None:
    config = load_config({"XDG_DATA_HOME": str(tmp_path)})

    assert config.db_repo_url == DEFAULT_DB_REPO_URL
    assert config.framework_executable == "rizin"
    assert config.debug is False
    assert config.download_timeout == 60.0


def test_overrides_win_and_none_is_ignored(tmp_path: Path) -> None:
    env = {"RZPM_SITEDIR": str(tmp_path / "env"), "RZPM_DEBUG": "1"}

    config = load_config(env, site_dir=tmp_path / "flag", debug=None)

    assert config.site_dir == tmp_path / "flag"
    assert config.debug is True


def test_unknown_override_is_rejected() -> None:
    with pytest.raises(ConfigError, match="colour"):
        load_config({}, colour=True)
