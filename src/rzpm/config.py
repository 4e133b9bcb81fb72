# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration model resolved from the process environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

SITE_DIR_ENV: Final[str] = "RZPM_SITEDIR"
DB_REPO_URL_ENV: Final[str] = "RZPM_DB_REPO_URL"
INSTALL_PREFIX_ENV: Final[str] = "RZPM_INSTALL_PREFIX"
FRAMEWORK_EXECUTABLE_ENV: Final[str] = "RZPM_RIZIN"
DEBUG_ENV: Final[str] = "RZPM_DEBUG"

DEFAULT_DB_REPO_URL: Final[str] = "https://github.com/rizinorg/rz-pm-db"
DEFAULT_FRAMEWORK_EXECUTABLE: Final[str] = "rizin"
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


def _data_home(env: Mapping[str, str]) -> Path:
    value = env.get("XDG_DATA_HOME")
    if value:
        return Path(value).expanduser()
    return Path.home() / ".local" / "share"


def default_site_dir(env: Mapping[str, str] | None = None) -> Path:
    """Return the site directory honouring ``RZPM_SITEDIR`` and XDG conventions."""

    source = os.environ if env is None else env
    override = source.get(SITE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return _data_home(source) / "rz-pm" / "site"


class RzPmConfig(BaseModel):
    """Settings shared by the site, catalog, and build backends."""

    model_config = ConfigDict(frozen=True)

    site_dir: Path = Field(default_factory=default_site_dir)
    db_repo_url: str = DEFAULT_DB_REPO_URL
    install_prefix: Path = Field(default_factory=lambda: Path.home() / ".local")
    framework_executable: str = DEFAULT_FRAMEWORK_EXECUTABLE
    download_timeout: float = Field(default=60.0, gt=0)
    debug: bool = False


def load_config(env: Mapping[str, str] | None = None, **overrides: object) -> RzPmConfig:
    """Build :class:`RzPmConfig` from ``env`` (defaults to ``os.environ``).

    Args:
        env: Environment mapping consulted for ``RZPM_*`` variables.
        **overrides: Explicit values that take precedence over the environment.

    Returns:
        RzPmConfig: Frozen configuration instance.

    Raises:
        ConfigError: If an override names an unknown setting.
    """

    source = os.environ if env is None else env
    unknown = sorted(set(overrides) - set(RzPmConfig.model_fields))
    if unknown:
        raise ConfigError(f"Unknown configuration option(s): {', '.join(unknown)}")

    values: dict[str, object] = {"site_dir": default_site_dir(source)}
    if db_url := source.get(DB_REPO_URL_ENV):
        values["db_repo_url"] = db_url
    if prefix := source.get(INSTALL_PREFIX_ENV):
        values["install_prefix"] = Path(prefix).expanduser()
    if executable := source.get(FRAMEWORK_EXECUTABLE_ENV):
        values["framework_executable"] = executable
    values["debug"] = source.get(DEBUG_ENV, "").strip().lower() in _TRUTHY
    values.update({key: value for key, value in overrides.items() if value is not None})
    return RzPmConfig.model_validate(values)


__all__ = [
    "ConfigError",
    "DEFAULT_DB_REPO_URL",
    "RzPmConfig",
    "default_site_dir",
    "load_config",
]
