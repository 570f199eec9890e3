"""Git plumbing for the local driver: remote discovery and throwaway branches."""

from __future__ import annotations

import re
import subprocess

import structlog

from codebuild_runner.core.exceptions import ConfigurationError, GitError

logger = structlog.get_logger(__name__)

GITHUB_SSH = "git@github.com:"
GITHUB_HTTPS = "https://github.com/"


def _run(*args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise GitError(
            f"git {' '.join(args)} failed: {result.stderr.strip()}",
            details={"returncode": result.returncode},
        )
    return result.stdout


def parse_github_url(url: str) -> tuple[str, str]:
    """Split a GitHub remote URL into ``(owner, repo)``.

    Accepts ``https://github.com/o/r(.git)`` and ``git@github.com:o/r(.git)``.

    Raises:
        ConfigurationError: For any other URL format.
    """
    for prefix in (GITHUB_HTTPS, GITHUB_SSH):
        if url.startswith(prefix):
            path = url[len(prefix):].rstrip("/")
            if path.endswith(".git"):
                path = path[: -len(".git")]
            owner, _, repo = path.partition("/")
            if owner and repo and "/" not in repo:
                return owner, repo
    raise ConfigurationError(f"Unsupported format: {url}")


def parse_remotes(output: str, remote: str) -> tuple[str, str]:
    """Find *remote*'s push URL in ``git remote -v`` output and parse it.

    Lines look like ``origin\\tgit@github.com:owner/repo.git (push)``. The
    remote name is matched exactly and never handed to a shell.

    Raises:
        ConfigurationError: If the remote is not listed or its URL is unsupported.
    """
    pattern = re.compile(rf"^{re.escape(remote)}\s+(\S+)\s+\(push\)$")
    for line in output.splitlines():
        match = pattern.match(line.strip())
        if match:
            return parse_github_url(match.group(1))
    raise ConfigurationError(f"No remote found named {remote}")


def github_info(remote: str = "origin") -> tuple[str, str]:
    """Return ``(owner, repo)`` for the GitHub repository behind *remote*."""
    return parse_remotes(_run("remote", "-v"), remote)


def push_branch(remote: str, branch: str) -> None:
    logger.info("git.push_branch", remote=remote, branch=branch)
    _run("push", remote, f"HEAD:{branch}")


def delete_branch(remote: str, branch: str) -> None:
    logger.info("git.delete_branch", remote=remote, branch=branch)
    _run("push", remote, f":{branch}")
