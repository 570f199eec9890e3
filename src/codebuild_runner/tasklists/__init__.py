"""Report pull-request task lists as GitHub commit statuses."""

from codebuild_runner.tasklists.parser import Task, tasks
from codebuild_runner.tasklists.reporter import (
    PullRequestDetails,
    TaskListSummary,
    pull_request_details,
    report_tasks,
    run_tasklists,
)

__all__ = [
    "Task",
    "tasks",
    "PullRequestDetails",
    "TaskListSummary",
    "pull_request_details",
    "report_tasks",
    "run_tasklists",
]
