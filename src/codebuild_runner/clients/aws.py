"""boto3-backed CodeBuild and CloudWatch Logs clients."""

from __future__ import annotations

import asyncio
import functools
import os
from collections.abc import Mapping
from typing import Any, Callable, TypeVar

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from codebuild_runner.clients.base import BuildClients, CodeBuildClient, LogsClient
from codebuild_runner.core.constants import (
    CONTAINER_CREDENTIAL_ENV_VARS,
    THROTTLING_MARKER,
    USER_AGENT_EXTRA,
)
from codebuild_runner.core.exceptions import (
    ConfigurationError,
    ThrottlingError,
    TransportError,
)
from codebuild_runner.core.types import BuildHandle, BuildRecord, BuildRequest, LogEventBatch

logger = structlog.get_logger(__name__)

_T = TypeVar("_T")

_THROTTLING_CODES = frozenset(
    {"ThrottlingException", "Throttling", "TooManyRequestsException", "RequestLimitExceeded"}
)

NO_CREDENTIALS = (
    "No credentials. Try adding aws-actions/configure-aws-credentials earlier "
    "in your job to set up AWS credentials."
)


def translate_error(exc: Exception) -> TransportError:
    """Map a botocore failure onto :class:`ThrottlingError` or :class:`TransportError`.

    The original message is kept so callers can report it as-is.
    """
    message = str(exc)
    code = None
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message") or message
    if code in _THROTTLING_CODES or THROTTLING_MARKER in message:
        return ThrottlingError(message, code=code)
    return TransportError(message, code=code)


async def _call(fn: Callable[..., _T], **kwargs: Any) -> _T:
    try:
        return await asyncio.to_thread(functools.partial(fn, **kwargs))
    except (ClientError, BotoCoreError) as exc:
        raise translate_error(exc) from exc


class Boto3CodeBuildClient(CodeBuildClient):
    def __init__(self, client: Any) -> None:
        self._client = client

    async def start_build(self, request: BuildRequest) -> BuildHandle:
        response = await _call(self._client.start_build, **request.to_start_build_kwargs())
        return BuildRecord.from_api(response["build"]).to_handle()

    async def batch_get_builds(self, ids: list[str]) -> list[BuildRecord]:
        response = await _call(self._client.batch_get_builds, ids=ids)
        return [BuildRecord.from_api(b) for b in response.get("builds") or []]


class Boto3LogsClient(LogsClient):
    def __init__(self, client: Any) -> None:
        self._client = client

    async def get_log_events(
        self,
        group_name: str,
        stream_name: str,
        next_token: str | None = None,
    ) -> LogEventBatch:
        kwargs: dict[str, Any] = {
            "logGroupName": group_name,
            "logStreamName": stream_name,
            "startFromHead": True,
        }
        if next_token:
            kwargs["nextToken"] = next_token
        response = await _call(self._client.get_log_events, **kwargs)
        return LogEventBatch.from_api(response)


def running_in_codebuild(environ: Mapping[str, str] | None = None) -> bool:
    """True when the container-credential variables of a CodeBuild host are set."""
    env = os.environ if environ is None else environ
    return any(env.get(name) for name in CONTAINER_CREDENTIAL_ENV_VARS)


def build_clients(
    hide_logs: bool | None = None,
    region: str | None = None,
    *,
    session: boto3.session.Session | None = None,
    environ: Mapping[str, str] | None = None,
) -> BuildClients:
    """Create the CodeBuild and CloudWatch Logs clients.

    Args:
        hide_logs: Force log streaming on (``False``) or off (``True``). When
            ``None``, logs are hidden only if this process runs inside a
            CodeBuild container, where they would be echoed back into the very
            stream being read.
        region: AWS region; falls back to the session's configured region.
        session: boto3 session to use (a default one is created otherwise).
        environ: Environment used for container detection.

    Raises:
        ConfigurationError: If no AWS credentials can be resolved.
    """
    session = session or boto3.session.Session(region_name=region)
    if session.get_credentials() is None:
        raise ConfigurationError(NO_CREDENTIALS)

    config = Config(user_agent_extra=USER_AGENT_EXTRA)
    code_build = session.client("codebuild", region_name=region, config=config)
    logs = session.client("logs", region_name=region, config=config)

    in_container = running_in_codebuild(environ)
    clients = BuildClients(
        code_build=Boto3CodeBuildClient(code_build),
        logs=Boto3LogsClient(logs),
        hide_logs=in_container if hide_logs is None else hide_logs,
        region=region or session.region_name,
    )
    logger.debug("clients.built", in_container=in_container, **clients.describe())
    return clients
