"""Tests for git.py: remote parsing and branch push/delete."""
from __future__ import annotations

import subprocess
from typing import Any

import pytest

from codebuild_runner import git
from codebuild_runner.core.exceptions import ConfigurationError, GitError

REMOTES = """\
origin\tgit@github.com:octo/widgets.git (fetch)
origin\tgit@github.com:octo/widgets.git (push)
upstream\thttps://github.com/parent/widgets.git (fetch)
upstream\thttps://github.com/parent/widgets (push)
"""


class FakeRun:
    """Records ``subprocess.run`` calls and answers with a canned result."""

    def __init__(self, stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr
        self.calls: list[list[str]] = []

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append(args)
        return subprocess.CompletedProcess(args, self.returncode, self.stdout, self.stderr)


# ---------------------------------------------------------------------------
# URL / remote parsing
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "url",
    [
        "git@github.com:octo/widgets.git",
        "git@github.com:octo/widgets",
        "https://github.com/octo/widgets.git",
        "https://github.com/octo/widgets",
    ],
)
def test_parse_github_url(url: str) -> None:
    assert git.parse_github_url(url) == ("octo", "widgets")


@pytest.mark.parametrize(
    "url", ["https://gitlab.com/octo/widgets.git", "ssh://git@github.com/octo/widgets", "octo"]
)
def test_parse_github_url_unsupported(url: str) -> None:
    with pytest.raises(ConfigurationError, match="Unsupported format"):
        git.parse_github_url(url)


def test_parse_remotes_picks_push_url() -> None:
    assert git.parse_remotes(REMOTES, "origin") == ("octo", "widgets")
    assert git.parse_remotes(REMOTES, "upstream") == ("parent", "widgets")


def test_parse_remotes_matches_whole_name() -> None:
    with pytest.raises(ConfigurationError, match="No remote found named orig"):
        git.parse_remotes(REMOTES, "orig")


def test_parse_remotes_name_is_not_a_pattern() -> None:
    with pytest.raises(ConfigurationError):
        git.parse_remotes(REMOTES, ".*")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def test_github_info_runs_git_remote(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeRun(stdout=REMOTES)
    monkeypatch.setattr(git.subprocess, "run", fake)

    assert git.github_info() == ("octo", "widgets")
    assert fake.calls == [["git", "remote", "-v"]]


def test_push_and_delete_branch(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeRun()
    monkeypatch.setattr(git.subprocess, "run", fake)

    git.push_branch("origin", "0f3c")
    git.delete_branch("origin", "0f3c")

    assert fake.calls == [
        ["git", "push", "origin", "HEAD:0f3c"],
        ["git", "push", "origin", ":0f3c"],
    ]


def test_failed_git_command_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        git.subprocess, "run", FakeRun(returncode=128, stderr="fatal: not a git repository\n")
    )

    with pytest.raises(GitError, match="not a git repository") as exc_info:
        git.push_branch("origin", "0f3c")

    assert exc_info.value.details == {"returncode": 128}
