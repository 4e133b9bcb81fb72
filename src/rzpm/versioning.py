# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Framework version helpers used for catalog selection and compatibility display."""

from __future__ import annotations

import re
from typing import Final

from packaging.version import InvalidVersion, Version

VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"(\d+(?:\.\d+)*)")


def release_parts(version: str) -> tuple[str, ...]:
    """Return the dotted numeric release components of ``version``.

    ``packaging`` normalises well-formed versions; anything it rejects falls
    back to the leading run of dotted digits so development builds such as
    ``0.8.0-git`` still resolve.
    """

    raw = version.strip().removeprefix("v")
    try:
        return tuple(str(part) for part in Version(raw).release)
    except InvalidVersion:
        match = VERSION_PATTERN.search(raw)
        if match is None:
            return ()
        return tuple(match.group(1).split("."))


def major_minor(version: str) -> str:
    """Return ``major.minor`` for ``version``; a bare major gets a ``.0`` minor."""

    parts = release_parts(version)
    if not parts:
        return version
    if len(parts) == 1:
        return f"{parts[0]}.0"
    return f"{parts[0]}.{parts[1]}"


def checkout_candidates(version: str) -> tuple[str, ...]:
    """Return catalog branch names to try for ``version`` in priority order."""

    parts = release_parts(version)[:3]
    return tuple(f"v{'.'.join(parts[:length])}" for length in range(len(parts), 0, -1))


def is_compatible(recorded: str | None, current: str) -> bool:
    """Return ``True`` when a package built for ``recorded`` matches ``current``."""

    if recorded is None:
        return True
    return major_minor(recorded) == major_minor(current)


__all__ = ["checkout_candidates", "is_compatible", "major_minor", "release_parts"]
