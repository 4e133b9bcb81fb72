# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Inter-process site lock backed by an exclusively created marker file."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final

from .errors import SiteLockedError

LOGGER = logging.getLogger(__name__)

LOCK_FILENAME: Final[str] = "site.lock"


class SiteLock:
    """Zero-byte marker whose existence means a process owns the site.

    Stale markers are never removed automatically; an operator deletes them.
    """

    def __init__(self, site_dir: Path) -> None:
        self.path = site_dir / LOCK_FILENAME
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def acquire(self) -> None:
        """Create the marker or fail immediately when it already exists.

        Raises:
            SiteLockedError: If the marker is present.
        """

        try:
            descriptor = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as exc:
            raise SiteLockedError(self.path) from exc
        os.close(descriptor)
        self._locked = True
        LOGGER.debug("acquired site lock %s", self.path)

    def release(self) -> None:
        """Delete the marker.

        Raises:
            RuntimeError: If this instance does not hold the lock.
        """

        if not self._locked:
            raise RuntimeError("site lock is not active")
        self.path.unlink(missing_ok=True)
        self._locked = False
        LOGGER.debug("released site lock %s", self.path)


__all__ = ["LOCK_FILENAME", "SiteLock"]
