# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the git client wrapper."""

from __future__ import annotations

from pathlib import Path

from rzpm.git import GitRepository, find_remote_ref
from rzpm.process import SubprocessExecutionError

REMOTE_REFS = ("git", "for-each-ref", "--format=%(refname:short)", "refs/remotes")
LOCAL_REFS = ("git", "for-each-ref", "--format=%(refname:short)", "refs/heads")


def test_find_remote_ref_honours_candidate_priority() -> None:
    refs = ["origin/v1", "origin/v1.2.3", "origin/v1.2", "origin/main"]

    assert find_remote_ref(refs, ("v1.2.5", "v1.2", "v1")) == "origin/v1.2"
    assert find_remote_ref(refs, ("v2.0.0", "v2.0", "v2")) is None


def test_clone_with_submodules(fake_runner, tmp_path: Path) -> None:
    repo = GitRepository.clone("https://h/rz-x.git", tmp_path / "rz-x", recurse_submodules=True, runner=fake_runner)

    assert repo.path == tmp_path / "rz-x"
    assert fake_runner.commands == [
        ("git", "clone", "--recurse-submodules", "https://h/rz-x.git", str(tmp_path / "rz-x")),
    ]


def test_pull_runs_in_worktree(fake_runner, tmp_path: Path) -> None:
    GitRepository(tmp_path, runner=fake_runner).pull(recurse_submodules=True)

    assert fake_runner.calls == [(("git", "pull", "--recurse-submodules", "origin"), tmp_path)]


def test_remote_branches_skip_head_alias(fake_runner, tmp_path: Path) -> None:
    fake_runner.replies[REMOTE_REFS] = "origin/HEAD\norigin/main\norigin/v0.7\n"

    assert GitRepository(tmp_path, runner=fake_runner).remote_branches() == ["origin/main", "origin/v0.7"]


def test_checkout_remote_branch_reuses_local_branch(fake_runner, tmp_path: Path) -> None:
    fake_runner.replies[LOCAL_REFS] = "main\nv0.7\n"
    repo = GitRepository(tmp_path, runner=fake_runner)

    assert repo.checkout_remote_branch("origin/v0.7") == "v0.7"
    assert repo.checkout_remote_branch("origin/v0.8") == "v0.8"

    assert ("git", "checkout", "v0.7") in fake_runner.commands
    assert ("git", "checkout", "-b", "v0.8", "origin/v0.8") in fake_runner.commands


def test_existing_local_branch_is_fast_forwarded(fake_runner, tmp_path: Path) -> None:
    fake_runner.replies[LOCAL_REFS] = "main\nv0.7\n"
    repo = GitRepository(tmp_path, runner=fake_runner)

    repo.checkout_remote_branch("origin/v0.7")
    repo.checkout_remote_branch("origin/v0.8")

    merges = [command for command in fake_runner.commands if command[:2] == ("git", "merge")]
    assert merges == [("git", "merge", "--ff-only", "origin/v0.7")]
    checkout = fake_runner.commands.index(("git", "checkout", "v0.7"))
    assert fake_runner.commands[checkout + 1] == ("git", "merge", "--ff-only", "origin/v0.7")


def test_default_branch_from_symbolic_ref(fake_runner, tmp_path: Path) -> None:
    fake_runner.replies[("git", "symbolic-ref")] = "origin/trunk\n"

    assert GitRepository(tmp_path, runner=fake_runner).default_branch() == "trunk"


def test_default_branch_falls_back_to_known_names(fake_runner, tmp_path: Path) -> None:
    fake_runner.failures[("git", "symbolic-ref")] = SubprocessExecutionError(["git"], 128, "", "not a symbolic ref")
    fake_runner.replies[REMOTE_REFS] = "origin/master\norigin/v0.6\n"

    assert GitRepository(tmp_path, runner=fake_runner).default_branch() == "master"


def test_exists_checks_for_git_dir(tmp_path: Path) -> None:
    assert not GitRepository.exists(tmp_path)
    (tmp_path / ".git").mkdir()
    assert GitRepository.exists(tmp_path)
