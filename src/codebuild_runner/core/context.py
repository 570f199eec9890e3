from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field

from codebuild_runner.core.constants import PULL_REQUEST_EVENTS
from codebuild_runner.core.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)


class CIContext(BaseModel):
    """Snapshot of the CI environment a build is triggered from.

    Everything the parameter builder needs from the outside world goes
    through this object, so it can be built by hand in tests or by
    :meth:`from_environment` inside a GitHub Actions job.

    Attributes:
        event_name: Triggering event (``push``, ``pull_request``, ...).
        owner: Repository owner login.
        repo: Repository name.
        sha: Commit the workflow was triggered for.
        payload: Parsed webhook event payload.
        env: Environment namespace used for variable passthrough and inputs.
    """

    event_name: str | None = None
    owner: str | None = None
    repo: str | None = None
    sha: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def is_pull_request(self) -> bool:
        return self.event_name in PULL_REQUEST_EVENTS

    @property
    def head_sha(self) -> str | None:
        pull_request = self.payload.get("pull_request") or {}
        head = pull_request.get("head") or {}
        return head.get("sha") or None

    @property
    def source_version(self) -> str | None:
        """Revision to build: the PR head for pull-request events, else ``sha``."""
        if self.is_pull_request:
            return self.head_sha
        return self.sha

    @classmethod
    def from_environment(cls, environ: dict[str, str] | None = None) -> CIContext:
        """Build a context from the ``GITHUB_*`` variables of an Actions runner.

        ``GITHUB_EVENT_PATH`` is read when it points at an existing file.

        Raises:
            ConfigurationError: If the event payload file is not valid JSON.
        """
        env = dict(os.environ if environ is None else environ)

        owner = repo = None
        repository = env.get("GITHUB_REPOSITORY", "")
        if "/" in repository:
            owner, _, repo = repository.partition("/")

        payload: dict[str, Any] = {}
        event_path = env.get("GITHUB_EVENT_PATH")
        if event_path and Path(event_path).is_file():
            try:
                payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ConfigurationError(
                    f"Event payload at {event_path} is not valid JSON"
                ) from exc

        context = cls(
            event_name=env.get("GITHUB_EVENT_NAME"),
            owner=owner or None,
            repo=repo or None,
            sha=env.get("GITHUB_SHA"),
            payload=payload,
            env=env,
        )
        logger.debug(
            "context.loaded",
            event_name=context.event_name,
            repository=repository or None,
            sha=context.sha,
        )
        return context
