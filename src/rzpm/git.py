# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Minimal git client built on the shared command runner."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from .process import CommandRunner, SubprocessExecutionError, default_runner

LOGGER = logging.getLogger(__name__)

DEFAULT_REMOTE: Final[str] = "origin"
_FALLBACK_DEFAULT_BRANCHES: Final[tuple[str, ...]] = ("main", "master")


class GitRepository:
    """Working tree at ``path`` driven through the ``git`` executable."""

    def __init__(self, path: Path, *, runner: CommandRunner | None = None) -> None:
        self.path = path
        self._runner = runner or default_runner

    @staticmethod
    def exists(path: Path) -> bool:
        """Return ``True`` when ``path`` holds a git working tree."""

        return (path / ".git").exists()

    @classmethod
    def clone(
        cls,
        url: str,
        path: Path,
        *,
        recurse_submodules: bool = False,
        runner: CommandRunner | None = None,
    ) -> GitRepository:
        """Clone ``url`` into ``path`` and return the repository."""

        active = runner or default_runner
        args = ["git", "clone"]
        if recurse_submodules:
            args.append("--recurse-submodules")
        args.extend([url, str(path)])
        LOGGER.info("cloning %s into %s", url, path)
        active(args)
        return cls(path, runner=active)

    def _git(self, *args: str, capture: bool = False) -> str:
        completed = self._runner(["git", *args], cwd=self.path, capture_output=capture)
        return (completed.stdout or "").strip() if capture else ""

    def _lines(self, *args: str) -> list[str]:
        return [line.strip() for line in self._git(*args, capture=True).splitlines() if line.strip()]

    def pull(self, *, remote: str = DEFAULT_REMOTE, recurse_submodules: bool = False) -> None:
        """Pull ``remote`` into the current branch; being up to date is success."""

        args = ["pull"]
        if recurse_submodules:
            args.append("--recurse-submodules")
        args.append(remote)
        LOGGER.info("pulling %s in %s", remote, self.path)
        self._git(*args)

    def current_branch(self) -> str:
        """Return the checked-out branch name (``HEAD`` when detached)."""

        return self._git("rev-parse", "--abbrev-ref", "HEAD", capture=True)

    def remote_branches(self) -> list[str]:
        """Return remote-tracking reference names such as ``origin/v0.7``."""

        refs = self._lines("for-each-ref", "--format=%(refname:short)", "refs/remotes")
        return [ref for ref in refs if "/" in ref and not ref.endswith("/HEAD")]

    def local_branches(self) -> list[str]:
        return self._lines("for-each-ref", "--format=%(refname:short)", "refs/heads")

    def checkout_remote_branch(self, remote_ref: str) -> str:
        """Check out ``remote_ref``, creating a tracking local branch when needed.

        An existing local branch is fast-forwarded to ``remote_ref`` so it
        picks up commits fetched while another branch was checked out.

        Returns:
            str: Name of the local branch now checked out.
        """

        local_name = remote_ref.split("/", 1)[1]
        if local_name in self.local_branches():
            self._git("checkout", local_name)
            self.fast_forward(remote_ref)
        else:
            self._git("checkout", "-b", local_name, remote_ref)
        return local_name

    def default_branch(self, *, remote: str = DEFAULT_REMOTE) -> str:
        """Return the branch ``remote/HEAD`` points at."""

        try:
            head = self._git("symbolic-ref", "--short", f"refs/remotes/{remote}/HEAD", capture=True)
        except SubprocessExecutionError:
            head = ""
        if head:
            return head.split("/", 1)[1] if "/" in head else head
        remote_names = {ref.split("/", 1)[1] for ref in self.remote_branches()}
        for candidate in _FALLBACK_DEFAULT_BRANCHES:
            if candidate in remote_names or candidate in self.local_branches():
                return candidate
        return _FALLBACK_DEFAULT_BRANCHES[0]

    def checkout(self, branch: str) -> None:
        self._git("checkout", branch)

    def fast_forward(self, remote_ref: str) -> None:
        """Advance the checked-out branch to ``remote_ref`` without creating merges."""

        self._git("merge", "--ff-only", remote_ref)


def find_remote_ref(remote_refs: Sequence[str], candidates: Sequence[str]) -> str | None:
    """Return the first remote ref whose branch name equals a candidate, by candidate priority."""

    by_branch: dict[str, str] = {}
    for ref in remote_refs:
        branch = ref.split("/", 1)[1] if "/" in ref else ref
        by_branch.setdefault(branch, ref)
    for candidate in candidates:
        if candidate in by_branch:
            return by_branch[candidate]
    return None


__all__ = ["DEFAULT_REMOTE", "GitRepository", "find_remote_ref"]
