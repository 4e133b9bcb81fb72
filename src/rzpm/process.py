# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import logging
import shutil

# Bandit: subprocess usage is intentional; we provide a controlled wrapper around
# external tool execution, normalising arguments and disabling ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import Protocol

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Immutable command execution options."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    check: bool = True
    capture_output: bool = False
    discard_stdin: bool = True


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        """Initialise the error with captured subprocess metadata.

        Args:
            command: Normalised command sequence that was executed.
            returncode: Exit status reported by the subprocess.
            stdout: Captured standard output stream.
            stderr: Captured standard error stream.
        """
        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class CommandRunner(Protocol):
    """Callable executing an external command on behalf of a backend or git client."""

    def __call__(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = False,
    ) -> CompletedProcess[str]: ...


def find_executable(name: str) -> str | None:
    """Return the absolute path of ``name`` on ``PATH`` or ``None``."""

    return shutil.which(name)


def _normalize_args(args: Sequence[str]) -> list[str]:
    """Normalise the subprocess argument sequence.

    Raises:
        ValueError: If no arguments are provided.
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
    """

    if not args:
        msg = "subprocess command requires at least one argument"
        raise ValueError(msg)

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = find_executable(head)
    if resolved is None:
        msg = f"Executable '{head}' was not found on PATH"
        raise FileNotFoundError(msg)
    return [resolved, *rest]


def run_command(args: Sequence[str], *, options: CommandOptions | None = None) -> CompletedProcess[str]:
    """Execute ``args`` after normalising the executable path.

    Standard output is captured when requested; otherwise both streams are
    forwarded line by line to this module's logger so build output is
    available for diagnosis without cluttering the console.

    Args:
        args: Command and argument sequence to execute.
        options: Options configuring execution semantics.

    Returns:
        CompletedProcess: Subprocess execution metadata.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
        SubprocessExecutionError: When ``check`` is true and the process exits
            with a non-zero status.
    """

    resolved = options or CommandOptions()
    normalized = _normalize_args(args)
    LOGGER.debug("running command=%s cwd=%s", " ".join(normalized), resolved.cwd)

    # Bandit: commands originate from manifests and fixed tool invocations; we pass
    # argument lists directly without shell expansion.
    process = subprocess.Popen(  # nosec B603
        normalized,
        cwd=str(resolved.cwd) if resolved.cwd is not None else None,
        env=dict(resolved.env) if resolved.env is not None else None,
        stdin=subprocess.DEVNULL if resolved.discard_stdin else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE if resolved.capture_output else subprocess.STDOUT,
        encoding="utf-8",
        errors="replace",
    )
    tool = Path(normalized[0]).name
    try:
        if resolved.capture_output:
            stdout, stderr = process.communicate()
            for line in (stderr or "").splitlines():
                LOGGER.info("%s: %s", tool, line)
        else:
            forwarded: list[str] = []
            for line in process.stdout or ():
                stripped = line.rstrip("\n")
                forwarded.append(stripped)
                LOGGER.info("%s: %s", tool, stripped)
            process.wait()
            stdout, stderr = "", "\n".join(forwarded[-20:])
    finally:
        if process.poll() is None:
            process.kill()
            process.wait()

    completed: CompletedProcess[str] = CompletedProcess(
        args=normalized,
        returncode=process.returncode,
        stdout=stdout,
        stderr=stderr,
    )
    if resolved.check and completed.returncode != 0:
        raise SubprocessExecutionError(normalized, completed.returncode, stdout, stderr)
    return completed


def default_runner(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    capture_output: bool = False,
) -> CompletedProcess[str]:
    """Run ``args`` with checked exit status, satisfying :class:`CommandRunner`."""

    return run_command(args, options=CommandOptions(cwd=cwd, capture_output=capture_output))


__all__ = [
    "CommandOptions",
    "CommandRunner",
    "SubprocessExecutionError",
    "default_runner",
    "find_executable",
    "run_command",
]
