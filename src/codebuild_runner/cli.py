"""Command-line entry points for codebuild-runner."""

from __future__ import annotations

import asyncio
import contextlib
import uuid
from typing import Any, Coroutine, Iterator, List, Optional, TypeVar

import structlog
import typer

from codebuild_runner import actions, git
from codebuild_runner.core.config import RunnerSettings
from codebuild_runner.core.constants import ImagePullCredentialsType
from codebuild_runner.core.context import CIContext
from codebuild_runner.core.exceptions import CodeBuildRunnerError, GitError
from codebuild_runner.core.parameters import (
    BuildOverrides,
    build_parameters,
    poll_config_from,
)
from codebuild_runner.core.runner import (
    build,
    default_client_factory,
    ensure_succeeded,
    run_action,
)
from codebuild_runner.core.types import BuildRecord
from codebuild_runner.tasklists.reporter import run_tasklists
from codebuild_runner.utils.async_helpers import run_sync, with_timeout
from codebuild_runner.utils.logging import configure_logging

logger = structlog.get_logger(__name__)

T = TypeVar("T")

app = typer.Typer(
    help="Run an AWS CodeBuild build from CI and wait for it to finish.",
    no_args_is_help=True,
    add_completion=False,
)


@contextlib.contextmanager
def _failures() -> Iterator[None]:
    """Turn expected failures into a one-line message and exit status 1."""
    try:
        yield
    except CodeBuildRunnerError as exc:
        logger.debug("cli.failed", error=str(exc), code=exc.code)
        typer.echo(f"Run failed: {exc}", err=True)
        raise typer.Exit(1) from exc
    except asyncio.TimeoutError as exc:
        typer.echo("Run failed: timed out waiting for the build", err=True)
        raise typer.Exit(1) from exc


def _wait(coro: Coroutine[Any, Any, T], timeout: float | None) -> T:
    if timeout:
        return run_sync(with_timeout(coro, timeout))
    return run_sync(coro)


def _report(record: BuildRecord) -> None:
    typer.echo(f"Build {record.id} finished with status {record.build_status}", err=True)
    ensure_succeeded(record)


def _delete_branch(remote: str, branch: str) -> None:
    try:
        git.delete_branch(remote, branch)
    except GitError as exc:
        logger.warning("git.delete_failed", remote=remote, branch=branch, error=str(exc))
        typer.echo(f"Could not delete branch {branch} on {remote}: {exc}", err=True)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR (default from CODEBUILD_RUNNER_LOG_LEVEL)"
    ),
    log_json: Optional[bool] = typer.Option(
        None, "--log-json/--no-log-json", help="Emit diagnostics as JSON lines"
    ),
) -> None:
    settings = RunnerSettings.from_env()
    configure_logging(
        level=log_level or settings.log_level,
        json=settings.log_json if log_json is None else log_json,
    )


@app.command("run")
def run_local(
    project_name: str = typer.Option(..., "-p", "--project-name", help="AWS CodeBuild project name"),
    buildspec_override: Optional[str] = typer.Option(
        None, "-b", "--buildspec-override", help="Path to buildspec file"
    ),
    compute_type_override: Optional[str] = typer.Option(
        None, "-c", "--compute-type-override", help="Compute type that overrides the project's"
    ),
    environment_type_override: Optional[str] = typer.Option(
        None, "--environment-type-override", help="Container type that overrides the project's"
    ),
    image_override: Optional[str] = typer.Option(
        None, "-i", "--image-override", help="Image that overrides the project's"
    ),
    image_pull_credentials_type_override: Optional[ImagePullCredentialsType] = typer.Option(
        None,
        "--image-pull-credentials-type-override",
        help="Type of credentials CodeBuild uses to pull images",
    ),
    env_vars_for_codebuild: Optional[List[str]] = typer.Option(
        None, "-e", "--env-vars-for-codebuild", help="Environment variables to send to CodeBuild"
    ),
    remote: str = typer.Option("origin", "-r", "--remote", help="Remote name to publish to"),
    update_interval: float = typer.Option(
        30.0, "--update-interval", help="Seconds between API calls for fetching updates"
    ),
    update_back_off: float = typer.Option(
        15.0, "--update-back-off", help="Base back-off in seconds when rate limited"
    ),
    hide_cloudwatch_logs: bool = typer.Option(
        False, "--hide-cloudwatch-logs", help="Do not stream the build's CloudWatch logs"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Give up after this many seconds"
    ),
) -> None:
    """Push HEAD to a throwaway branch, build it, then delete the branch."""
    with _failures():
        owner, repo = git.github_info(remote)
        context = CIContext.from_environment().model_copy(
            update={"owner": owner, "repo": repo}
        )
        branch = str(uuid.uuid4())
        request = build_parameters(
            context,
            BuildOverrides(
                project_name=project_name,
                source_version=branch,
                buildspec_override=buildspec_override,
                compute_type_override=compute_type_override,
                environment_type_override=environment_type_override,
                image_override=image_override,
                image_pull_credentials_type_override=image_pull_credentials_type_override,
                env_passthrough=env_vars_for_codebuild or [],
                hide_cloudwatch_logs=hide_cloudwatch_logs,
            ),
        )
        poll_config = poll_config_from(update_interval, update_back_off)
        clients = default_client_factory(request)

        git.push_branch(remote, branch)
        try:
            record = _wait(build(clients, request, poll_config), timeout)
        finally:
            _delete_branch(remote, branch)
        _report(record)


@app.command("action")
def action(
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Give up after this many seconds"
    ),
) -> None:
    """GitHub Action entry point; inputs come from INPUT_* variables."""
    with _failures():
        context = CIContext.from_environment()
        record = _wait(run_action(context), timeout)
        typer.echo(f"Build {record.id} finished with status {record.build_status}", err=True)


@app.command("tasklists")
def tasklists(
    github_token: Optional[str] = typer.Option(
        None, "--github-token", envvar="GITHUB_TOKEN", help="Token used to post commit statuses"
    ),
    report_tasks: Optional[bool] = typer.Option(
        None, "--report-tasks/--no-report-tasks", help="Post one status per task item"
    ),
) -> None:
    """Mirror the pull request's task list as commit statuses."""
    with _failures():
        context = CIContext.from_environment()
        token = github_token or actions.get_input("github_token", context.env, required=True)
        each_task = (
            actions.get_input("report_tasks", context.env) == "true"
            if report_tasks is None
            else report_tasks
        )
        summary = run_sync(run_tasklists(context, token, report_each_task=each_task))
        if summary is not None:
            typer.echo(summary.description, err=True)


def main() -> None:
    app()
