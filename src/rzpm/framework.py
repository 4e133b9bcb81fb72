# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Query the installed framework for its version and directory layout."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from .errors import FrameworkNotFoundError
from .process import CommandOptions, SubprocessExecutionError, find_executable, run_command
from .versioning import major_minor

LOGGER = logging.getLogger(__name__)

PKG_CONFIG_SUBDIR: Final[str] = "pkgconfig"
CMAKE_SUBDIR: Final[str] = "cmake"


class FrameworkInfo(BaseModel):
    """Subset of ``rizin -H`` output consumed by the package lifecycle."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = Field(alias="RZ_VERSION")
    lib_dir: str = Field(default="", alias="RZ_LIBDIR")
    prefix: str = Field(default="", alias="RZ_PREFIX")
    inc_dir: str = Field(default="", alias="RZ_INCDIR")
    user_plugins: str = Field(default="", alias="RZ_USER_PLUGINS")

    @property
    def major_minor(self) -> str:
        """Return the ``major.minor`` compatibility unit of :attr:`version`."""

        return major_minor(self.version)

    @property
    def pkg_config_dir(self) -> Path | None:
        """Return ``<libdir>/pkgconfig`` when it exists."""

        return self._lib_subdir(PKG_CONFIG_SUBDIR)

    @property
    def cmake_dir(self) -> Path | None:
        """Return ``<libdir>/cmake`` when it exists."""

        return self._lib_subdir(CMAKE_SUBDIR)

    def _lib_subdir(self, name: str) -> Path | None:
        if not self.lib_dir:
            return None
        candidate = Path(self.lib_dir) / name
        return candidate if candidate.is_dir() else None


FrameworkProbe = Callable[[], FrameworkInfo]


def parse_key_values(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines, skipping blanks, comments, and malformed lines."""

    result: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        result[key.strip()] = value.strip()
    return result


def query_framework(executable: str = "rizin") -> FrameworkInfo:
    """Run ``<executable> -H`` and return the parsed :class:`FrameworkInfo`.

    Raises:
        FrameworkNotFoundError: If the executable is missing, fails, or omits
            its version.
    """

    if find_executable(executable) is None and not Path(executable).is_absolute():
        raise FrameworkNotFoundError(
            f"{executable} does not seem to be installed on your system. Make sure it is installed and in PATH"
        )
    try:
        completed = run_command(
            [executable, "-H"],
            options=CommandOptions(capture_output=True),
        )
    except (OSError, SubprocessExecutionError) as exc:
        raise FrameworkNotFoundError(f"failed to run {executable}: {exc}") from exc

    values = parse_key_values(completed.stdout or "")
    if not values.get("RZ_VERSION"):
        raise FrameworkNotFoundError(f"failed to parse {executable} info: RZ_VERSION missing")
    info = FrameworkInfo.model_validate(values)
    LOGGER.debug("framework version=%s libdir=%s", info.version, info.lib_dir)
    return info


__all__ = ["FrameworkInfo", "FrameworkProbe", "parse_key_values", "query_framework"]
