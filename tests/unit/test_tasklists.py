"""Tests for tasklists/: task-list parsing and commit-status reporting."""
from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from codebuild_runner.connectors.github import GitHubConfig, GitHubConnector
from codebuild_runner.core.context import CIContext
from codebuild_runner.core.exceptions import TaskListError
from codebuild_runner.tasklists.parser import tasks
from codebuild_runner.tasklists.reporter import (
    SUMMARY_CONTEXT,
    PullRequestDetails,
    TaskListSummary,
    pull_request_details,
    report_tasks,
    run_tasklists,
)

BODY = """\
Release checklist

- [x] Bump version
- [ ] Update changelog
  * [X] Nested item
1. [ ] Numbered item
> - [ ] Quoted item

```
- [ ] not a task, inside a fence
```

- [] not a task either
"""


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def test_tasks_in_document_order() -> None:
    found = [(t.name, t.completed) for t in tasks(BODY)]
    assert found == [
        ("Bump version", True),
        ("Update changelog", False),
        ("Nested item", True),
        ("Numbered item", False),
        ("Quoted item", False),
    ]


def test_tasks_empty_body() -> None:
    assert list(tasks(None)) == []
    assert list(tasks("")) == []


def test_tilde_fence_is_respected() -> None:
    body = "~~~\n- [ ] hidden\n~~~\n- [x] shown"
    assert [t.name for t in tasks(body)] == ["shown"]


def test_html_comment_items_are_not_tasks() -> None:
    body = "Fill in:\n\n<!--\n- [ ] Template hint, not a task\n-->\n\n- [x] Real task\n"
    assert [t.name for t in tasks(body)] == ["Real task"]


def test_indented_code_items_are_not_tasks() -> None:
    body = "Example:\n\n    - [ ] code sample\n"
    assert list(tasks(body)) == []


def test_task_with_inline_markup_keeps_source_text() -> None:
    found = list(tasks("- [x] Ship `v2` to **prod**\n"))
    assert [(t.name, t.completed) for t in found] == [("Ship `v2` to **prod**", True)]


# ---------------------------------------------------------------------------
# Summary / payload
# ---------------------------------------------------------------------------


def test_summary_description() -> None:
    assert TaskListSummary().description == "No tasks"
    assert TaskListSummary().all_completed
    assert TaskListSummary(completed=1, total=3).description == "1 of 3 tasks"
    assert not TaskListSummary(completed=1, total=3).all_completed


def test_pull_request_details() -> None:
    details = pull_request_details(
        {
            "pull_request": {"body": "- [ ] a", "head": {"sha": "abc"}},
            "repository": {"name": "widgets", "owner": {"login": "octo"}},
        }
    )
    assert details == PullRequestDetails(body="- [ ] a", owner="octo", repo="widgets", sha="abc")


def test_pull_request_details_other_event() -> None:
    assert pull_request_details({"ref": "refs/heads/main"}) is None


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------


class FakeGitHub:
    """httpx handler that serves existing statuses and records posted ones."""

    def __init__(self, existing: list[dict[str, Any]] | None = None, fail: bool = False) -> None:
        self.existing = existing or []
        self.fail = fail
        self.posted: list[dict[str, Any]] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            return httpx.Response(500, json={"message": "boom"})
        if request.method == "GET":
            return httpx.Response(200, json=self.existing)
        self.posted.append(json.loads(request.content))
        return httpx.Response(201, json={})

    def connector(self) -> GitHubConnector:
        gh = GitHubConnector(GitHubConfig(token="t"))
        gh._client = httpx.AsyncClient(
            base_url="https://api.github.com", transport=httpx.MockTransport(self)
        )
        return gh


DETAILS = PullRequestDetails(body=BODY, owner="octo", repo="widgets", sha="abc")


async def test_summary_only_by_default() -> None:
    fake = FakeGitHub()

    summary = await report_tasks(fake.connector(), DETAILS)

    assert (summary.completed, summary.total) == (2, 5)
    assert fake.posted == [
        {"state": "pending", "context": SUMMARY_CONTEXT, "description": "2 of 5 tasks"}
    ]


async def test_all_done_summary_is_success() -> None:
    fake = FakeGitHub()
    details = DETAILS.model_copy(update={"body": "- [x] one\n- [x] two"})

    await report_tasks(fake.connector(), details)

    assert fake.posted[-1]["state"] == "success"
    assert fake.posted[-1]["description"] == "2 of 2 tasks"


async def test_no_tasks_summary() -> None:
    fake = FakeGitHub()

    await report_tasks(fake.connector(), DETAILS.model_copy(update={"body": None}))

    assert fake.posted == [{"state": "success", "context": SUMMARY_CONTEXT, "description": "No tasks"}]


async def test_each_task_reported_and_removed_ones_flagged() -> None:
    fake = FakeGitHub(
        existing=[
            {"context": "Tasklists Task: Bump version", "state": "pending"},
            {"context": "Tasklists Task: Dropped item", "state": "pending"},
            {"context": "Tasklists Task: Dropped item", "state": "pending"},
            {"context": "ci/build", "state": "success"},
        ]
    )
    details = DETAILS.model_copy(update={"body": "- [x] Bump version\n- [ ] Write docs"})

    summary = await report_tasks(fake.connector(), details, report_each_task=True)

    assert summary.removed == ["Tasklists Task: Dropped item"]
    by_context = {p["context"]: p for p in fake.posted}
    assert len(fake.posted) == 4
    assert by_context["Tasklists Task: Bump version"]["state"] == "success"
    assert by_context["Tasklists Task: Write docs"]["state"] == "pending"
    assert by_context["Tasklists Task: Dropped item"] == {
        "state": "error",
        "context": "Tasklists Task: Dropped item",
        "description": "Removed",
    }
    assert by_context[SUMMARY_CONTEXT]["description"] == "1 of 2 tasks"
    assert "ci/build" not in by_context


async def test_github_failure_becomes_task_list_error() -> None:
    with pytest.raises(TaskListError, match="GitHub API call failed"):
        await report_tasks(FakeGitHub(fail=True).connector(), DETAILS)


async def test_run_tasklists_skips_non_pull_request() -> None:
    context = CIContext(event_name="push", payload={"ref": "refs/heads/main"})
    assert await run_tasklists(context, "token") is None
