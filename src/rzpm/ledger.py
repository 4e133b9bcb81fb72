# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persisted record of installed packages and the files each one wrote."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .versioning import major_minor

LOGGER = logging.getLogger(__name__)

LEDGER_MODE: Final[int] = 0o600


class InstalledRecord(BaseModel):
    """One installed package.

    ``files`` is three-state: ``None`` marks a legacy entry whose package must
    remove itself, an empty list means nothing to delete, and a populated list
    names every path written by the install step.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    files: tuple[str, ...] | None = None
    rizin_version: str | None = None


_RECORDS: Final[TypeAdapter[list[InstalledRecord] | None]] = TypeAdapter(list[InstalledRecord] | None)
_LEGACY_NAMES: Final[TypeAdapter[list[str]]] = TypeAdapter(list[str])


def decode_ledger(payload: str | bytes, framework_version: str) -> list[InstalledRecord]:
    """Decode the ledger, accepting the structured form or a legacy list of names.

    Records lacking ``rizin_version`` are backfilled with the current
    ``major.minor``; legacy entries keep ``files=None``. A JSON ``null``
    document is an empty ledger and unknown record keys are ignored.

    Raises:
        ValueError: If ``payload`` matches neither form.
    """

    try:
        records = _RECORDS.validate_json(payload) or []
    except ValidationError as structured_error:
        try:
            names = _LEGACY_NAMES.validate_json(payload)
        except ValidationError:
            raise ValueError(f"unrecognised ledger format: {structured_error}") from structured_error
        records = [InstalledRecord(name=name) for name in names if name]

    current = major_minor(framework_version)
    return [
        record if record.rizin_version is not None else record.model_copy(update={"rizin_version": current})
        for record in records
    ]


def encode_ledger(records: Sequence[InstalledRecord]) -> str:
    """Serialise ``records`` in the current structured form."""

    return json.dumps([record.model_dump(mode="json") for record in records])


@dataclass(slots=True)
class Ledger:
    """In-memory view of the ledger file at :attr:`path`."""

    path: Path
    records: list[InstalledRecord] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path, framework_version: str) -> Ledger:
        """Return the ledger stored at ``path`` (empty when the file is absent)."""

        if not path.exists():
            return cls(path=path)
        records = decode_ledger(path.read_bytes(), framework_version)
        LOGGER.debug("loaded %d ledger records from %s", len(records), path)
        return cls(path=path, records=records)

    def __iter__(self) -> Iterator[InstalledRecord]:
        return iter(list(self.records))

    def __len__(self) -> int:
        return len(self.records)

    def get(self, name: str) -> InstalledRecord | None:
        for record in self.records:
            if record.name == name:
                return record
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def add(self, record: InstalledRecord) -> None:
        self.records.append(record)

    def remove(self, name: str) -> None:
        self.records = [record for record in self.records if record.name != name]

    def save(self) -> None:
        """Write the ledger with owner-only permissions."""

        payload = encode_ledger(self.records).encode("utf-8")
        descriptor = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, LEDGER_MODE)
        with os.fdopen(descriptor, "wb") as stream:
            stream.write(payload)
        os.chmod(self.path, LEDGER_MODE)


__all__ = ["InstalledRecord", "Ledger", "decode_ledger", "encode_ledger"]
