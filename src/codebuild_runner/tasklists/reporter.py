"""Mirror PR task-list items as commit statuses.

Each ``- [ ]`` / ``- [x]`` item of the pull-request description becomes a
``Tasklists Task: <name>`` status (``pending`` / ``success``). Items reported
earlier that are no longer in the description are flagged ``error`` with the
description ``Removed``. A ``Tasklists: Completed`` summary status is always
posted. This feature shares nothing with the build synchronizer.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable

import httpx
import structlog
from pydantic import BaseModel, Field

from codebuild_runner.connectors.github import GitHubConfig, GitHubConnector
from codebuild_runner.core.constants import CommitState
from codebuild_runner.core.context import CIContext
from codebuild_runner.core.exceptions import TaskListError
from codebuild_runner.tasklists.parser import tasks

logger = structlog.get_logger(__name__)

TASK_CONTEXT_PREFIX = "Tasklists Task:"
SUMMARY_CONTEXT = "Tasklists: Completed"


class PullRequestDetails(BaseModel):
    body: str | None = None
    owner: str
    repo: str
    sha: str


class TaskListSummary(BaseModel):
    completed: int = 0
    total: int = 0
    removed: list[str] = Field(default_factory=list)

    @property
    def all_completed(self) -> bool:
        return self.completed == self.total

    @property
    def description(self) -> str:
        if self.total == 0:
            return "No tasks"
        return f"{self.completed} of {self.total} tasks"


def pull_request_details(payload: dict[str, Any]) -> PullRequestDetails | None:
    """Pull body, repository and head sha out of a ``pull_request`` event payload.

    Returns ``None`` for any other kind of event.
    """
    pull_request = payload.get("pull_request")
    if not pull_request:
        return None
    repository = payload.get("repository") or {}
    head = pull_request.get("head") or {}
    if not head.get("sha"):
        return None
    return PullRequestDetails(
        body=pull_request.get("body"),
        owner=(repository.get("owner") or {}).get("login", ""),
        repo=repository.get("name", ""),
        sha=head["sha"],
    )


def task_context(name: str) -> str:
    return f"{TASK_CONTEXT_PREFIX} {name}"


async def report_tasks(
    github: GitHubConnector,
    details: PullRequestDetails,
    *,
    report_each_task: bool = False,
) -> TaskListSummary:
    """Post the task-list statuses for one pull request.

    Args:
        github: A connected :class:`GitHubConnector`.
        details: Pull request to report on.
        report_each_task: Also post one status per task and reconcile
            statuses of tasks that have disappeared.

    Raises:
        TaskListError: If a GitHub API call fails.
    """
    owner, repo, sha = details.owner, details.repo, details.sha
    summary = TaskListSummary()
    pending: list[Awaitable[Any]] = []

    try:
        dangling: set[str] = set()
        if report_each_task:
            existing = await github.list_commit_statuses(owner, repo, sha)
            dangling = {
                s["context"]
                for s in existing
                if s.get("context", "").startswith(TASK_CONTEXT_PREFIX)
            }

        for task in tasks(details.body):
            summary.total += 1
            if task.completed:
                summary.completed += 1
            if report_each_task:
                context = task_context(task.name)
                dangling.discard(context)
                pending.append(
                    github.create_commit_status(
                        owner,
                        repo,
                        sha,
                        CommitState.SUCCESS if task.completed else CommitState.PENDING,
                        context,
                    )
                )

        for context in sorted(dangling):
            summary.removed.append(context)
            pending.append(
                github.create_commit_status(
                    owner, repo, sha, CommitState.ERROR, context, description="Removed"
                )
            )

        pending.append(
            github.create_commit_status(
                owner,
                repo,
                sha,
                CommitState.SUCCESS if summary.all_completed else CommitState.PENDING,
                SUMMARY_CONTEXT,
                description=summary.description,
            )
        )
        await asyncio.gather(*pending)
    except httpx.HTTPError as exc:
        raise TaskListError(f"GitHub API call failed: {exc}") from exc

    logger.info(
        "tasklists.reported",
        sha=sha,
        completed=summary.completed,
        total=summary.total,
        removed=len(summary.removed),
    )
    return summary


async def run_tasklists(
    context: CIContext,
    token: str,
    *,
    report_each_task: bool = False,
    github_config: GitHubConfig | None = None,
) -> TaskListSummary | None:
    """Entry point: report task lists for the event in *context*.

    Returns ``None`` (and does nothing) when the event is not a pull request.
    """
    details = pull_request_details(context.payload)
    if details is None:
        logger.info("tasklists.skipped", reason="Not a pull_request event. Skipping")
        return None

    config = (github_config or GitHubConfig()).model_copy(update={"token": token})
    async with GitHubConnector(config) as github:
        return await report_tasks(github, details, report_each_task=report_each_task)
