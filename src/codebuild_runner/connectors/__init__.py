"""HTTP API connectors."""

from __future__ import annotations

from codebuild_runner.connectors.github import GitHubConfig, GitHubConnector

__all__ = ["GitHubConfig", "GitHubConnector"]
