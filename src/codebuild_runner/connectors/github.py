"""GitHub connector: commit statuses."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from codebuild_runner.core.constants import CommitState

logger = structlog.get_logger(__name__)

_PAGE_SIZE = 100


class GitHubConfig(BaseModel):
    """Settings for :class:`GitHubConnector`.

    Attributes:
        token: Token sent as a bearer token. Anonymous when unset.
        base_url: API root; point it at ``https://<host>/api/v3`` for GHES.
        timeout: HTTP request timeout in seconds.
    """

    token: str | None = None
    base_url: str = "https://api.github.com"
    timeout: float = 30.0


class GitHubConnector:
    """Async client for the GitHub REST API v3 commit status endpoints.

    Usage::

        async with GitHubConnector(GitHubConfig(token=token)) as gh:
            await gh.create_commit_status("owner", "repo", sha, "success", "ci")
    """

    def __init__(self, config: GitHubConfig) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> GitHubConfig:
        return self._config

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            headers=self._build_headers(),
            timeout=self._config.timeout,
        )
        logger.debug("github.connected", base_url=self._config.base_url)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("github.closed")

    async def __aenter__(self) -> GitHubConnector:
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    def _build_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("GitHubConnector is not connected. Call connect() first.")
        return self._client

    async def list_commit_statuses(
        self, owner: str, repo: str, ref: str
    ) -> list[dict[str, Any]]:
        """List every status reported for *ref*, newest first, across all pages."""
        client = self._ensure_connected()
        statuses: list[dict[str, Any]] = []
        page = 1
        while True:
            resp = await client.get(
                f"/repos/{owner}/{repo}/commits/{ref}/statuses",
                params={"per_page": _PAGE_SIZE, "page": page},
            )
            resp.raise_for_status()
            batch: list[dict[str, Any]] = resp.json()
            statuses.extend(batch)
            if len(batch) < _PAGE_SIZE:
                return statuses
            page += 1

    async def create_commit_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        state: CommitState | str,
        context: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create a commit status.

        Args:
            owner: Repository owner.
            repo: Repository name.
            sha: Commit the status is attached to.
            state: ``error``, ``failure``, ``pending`` or ``success``.
            context: Label that identifies the status.
            description: Short human-readable description.

        Returns:
            Created status object.
        """
        client = self._ensure_connected()
        payload: dict[str, Any] = {"state": str(state), "context": context}
        if description is not None:
            payload["description"] = description
        resp = await client.post(f"/repos/{owner}/{repo}/statuses/{sha}", json=payload)
        resp.raise_for_status()
        logger.debug("github.status_created", context=context, state=str(state))
        result: dict[str, Any] = resp.json()
        return result
