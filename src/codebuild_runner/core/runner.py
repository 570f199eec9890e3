from __future__ import annotations

from typing import Callable

import structlog

from codebuild_runner import actions
from codebuild_runner.clients.aws import build_clients
from codebuild_runner.clients.base import BuildClients
from codebuild_runner.core.config import PollConfig
from codebuild_runner.core.constants import BuildStatus
from codebuild_runner.core.context import CIContext
from codebuild_runner.core.exceptions import BuildFailedError
from codebuild_runner.core.logs import LogPresenter
from codebuild_runner.core.parameters import build_parameters, inputs_from_action
from codebuild_runner.core.synchronizer import BuildSynchronizer, Sleep
from codebuild_runner.core.types import BuildHandle, BuildRecord, BuildRequest

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[BuildRequest], BuildClients]

BUILD_ID_OUTPUT = "aws-build-id"


async def start_build(clients: BuildClients, request: BuildRequest) -> BuildHandle:
    handle = await clients.code_build.start_build(request)
    logger.info(
        "build.started",
        build_id=handle.id,
        project_name=request.project_name,
        source_version=request.source_version,
    )
    return handle


async def build(
    clients: BuildClients,
    request: BuildRequest,
    poll_config: PollConfig | None = None,
    presenter: LogPresenter | None = None,
    *,
    sleep: Sleep | None = None,
) -> BuildRecord:
    """Start a build and wait for it to settle.

    Returns:
        The settled :class:`BuildRecord`. Its ``build_status`` is not checked
        here; see :func:`ensure_succeeded`.
    """
    handle = await start_build(clients, request)
    kwargs = {"sleep": sleep} if sleep is not None else {}
    synchronizer = BuildSynchronizer(clients, poll_config, presenter, **kwargs)
    return await synchronizer.synchronize(handle)


def ensure_succeeded(record: BuildRecord) -> BuildRecord:
    """Raise :class:`BuildFailedError` unless the build status is ``SUCCEEDED``."""
    if record.build_status != BuildStatus.SUCCEEDED:
        raise BuildFailedError(record.id, record.build_status)
    return record


def default_client_factory(request: BuildRequest) -> BuildClients:
    return build_clients(hide_logs=True if request.hide_cloudwatch_logs else None)


async def run_action(
    context: CIContext,
    *,
    client_factory: ClientFactory = default_client_factory,
    presenter: LogPresenter | None = None,
    sleep: Sleep | None = None,
) -> BuildRecord:
    """GitHub Action entry point.

    Reads the action inputs, starts the build for the triggering revision,
    waits for it, and publishes the build id as the ``aws-build-id`` output.

    Raises:
        ValidationError: For missing or inconsistent inputs.
        BuildFailedError: When the build settles with a non-successful status.
    """
    overrides, poll_config = inputs_from_action(context)
    request = build_parameters(context, overrides)
    clients = client_factory(request)

    record = await build(clients, request, poll_config, presenter, sleep=sleep)
    actions.set_output(BUILD_ID_OUTPUT, record.id, context.env)
    return ensure_succeeded(record)
