from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from codebuild_runner.core.constants import (
    EnvironmentVariableType,
    ImagePullCredentialsType,
    SourceType,
)

_ARN_GROUP_MARKER = ":log-group:"
_ARN_STREAM_MARKER = ":log-stream:"
_ABSENT = "null"


class EnvironmentVariable(BaseModel):
    name: str
    value: str
    type: EnvironmentVariableType = EnvironmentVariableType.PLAINTEXT

    def to_api(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value, "type": str(self.type)}


class BuildRequest(BaseModel):
    """Validated descriptor sent to CodeBuild ``StartBuild``.

    Built once per invocation by
    :func:`~codebuild_runner.core.parameters.build_parameters` and never
    mutated afterwards. When ``disable_source_override`` is set the three
    ``source_*`` fields are ``None`` and the project's own source is used.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., min_length=1)
    source_version: str | None = None
    source_type_override: SourceType | None = None
    source_location_override: str | None = None
    buildspec_override: str | None = None
    compute_type_override: str | None = None
    environment_type_override: str | None = None
    image_override: str | None = None
    image_pull_credentials_type_override: ImagePullCredentialsType | None = None
    environment_variables_override: tuple[EnvironmentVariable, ...] = ()
    hide_cloudwatch_logs: bool = False
    disable_source_override: bool = False
    disable_github_env_vars: bool = False

    def to_start_build_kwargs(self) -> dict[str, Any]:
        """Render the keyword arguments for boto3 ``start_build``.

        Unset overrides are left out entirely so CodeBuild falls back to the
        project configuration.
        """
        optional: dict[str, Any] = {
            "sourceVersion": self.source_version,
            "sourceTypeOverride": (
                str(self.source_type_override) if self.source_type_override else None
            ),
            "sourceLocationOverride": self.source_location_override,
            "buildspecOverride": self.buildspec_override,
            "computeTypeOverride": self.compute_type_override,
            "environmentTypeOverride": self.environment_type_override,
            "imageOverride": self.image_override,
            "imagePullCredentialsTypeOverride": (
                str(self.image_pull_credentials_type_override)
                if self.image_pull_credentials_type_override
                else None
            ),
        }
        kwargs: dict[str, Any] = {"projectName": self.project_name}
        kwargs.update({k: v for k, v in optional.items() if v is not None})
        kwargs["environmentVariablesOverride"] = [
            var.to_api() for var in self.environment_variables_override
        ]
        return kwargs


class LogStreamLocator(BaseModel):
    """Where a build's CloudWatch log events live.

    Either component may be ``None``: logging disabled for the project, or the
    stream not allocated yet.
    """

    group_name: str | None = None
    stream_name: str | None = None

    @property
    def is_available(self) -> bool:
        return bool(self.group_name) and bool(self.stream_name)

    @classmethod
    def from_arn(cls, arn: str | None) -> LogStreamLocator:
        """Parse ``arn:aws:logs:<region>:<account>:log-group:<g>:log-stream:<s>``.

        CodeBuild reports a missing group or stream as the literal ``null``;
        those come back as ``None``. A missing or malformed ARN yields an
        empty locator.
        """
        if not arn or _ARN_GROUP_MARKER not in arn:
            return cls()
        _, _, tail = arn.partition(_ARN_GROUP_MARKER)
        group, _, stream = tail.partition(_ARN_STREAM_MARKER)
        return cls(
            group_name=group if group and group != _ABSENT else None,
            stream_name=stream if stream and stream != _ABSENT else None,
        )

    @classmethod
    def from_build_logs(cls, logs: dict[str, Any] | None) -> LogStreamLocator:
        logs = logs or {}
        if "cloudWatchLogsArn" in logs:
            return cls.from_arn(logs.get("cloudWatchLogsArn"))
        return cls(
            group_name=logs.get("groupName") or None,
            stream_name=logs.get("streamName") or None,
        )

    def console_url(self, region: str) -> str | None:
        if not self.is_available:
            return None
        return (
            f"https://{region}.console.aws.amazon.com/cloudwatch/home"
            f"?region={region}#logEvent:group={self.group_name};stream={self.stream_name}"
        )


class BuildHandle(BaseModel):
    id: str
    logs: LogStreamLocator = Field(default_factory=LogStreamLocator)


class BuildRecord(BaseModel):
    """The remote system's current view of one build.

    ``end_time`` is ``None`` while the build is running. CodeBuild is the only
    writer; the synchronizer replaces its copy on every poll.
    """

    id: str
    logs: LogStreamLocator = Field(default_factory=LogStreamLocator)
    end_time: datetime | str | None = None
    build_status: str | None = None
    current_phase: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None

    @classmethod
    def from_api(cls, build: dict[str, Any]) -> BuildRecord:
        return cls(
            id=build["id"],
            logs=LogStreamLocator.from_build_logs(build.get("logs")),
            end_time=build.get("endTime"),
            build_status=build.get("buildStatus"),
            current_phase=build.get("currentPhase"),
            raw=build,
        )

    def to_handle(self) -> BuildHandle:
        return BuildHandle(id=self.id, logs=self.logs)


class LogEvent(BaseModel):
    message: str
    timestamp: int | None = None
    ingestion_time: int | None = None

    @classmethod
    def from_api(cls, event: dict[str, Any]) -> LogEvent:
        return cls(
            message=event.get("message", ""),
            timestamp=event.get("timestamp"),
            ingestion_time=event.get("ingestionTime"),
        )


class LogEventBatch(BaseModel):
    """Events returned by one ``get_log_events`` poll.

    An empty batch after ``end_time`` is set is what lets a build settle.
    """

    events: list[LogEvent] = Field(default_factory=list)
    next_forward_token: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.events

    @classmethod
    def from_api(cls, response: dict[str, Any] | None) -> LogEventBatch:
        if not response:
            return cls()
        return cls(
            events=[LogEvent.from_api(e) for e in response.get("events") or []],
            next_forward_token=response.get("nextForwardToken"),
        )
