from __future__ import annotations

from enum import StrEnum

THROTTLING_MARKER = "Rate exceeded"

USER_AGENT_EXTRA = "codebuild-runner"

# Set by the CodeBuild agent inside a build container.
CONTAINER_CREDENTIAL_ENV_VARS = (
    "AWS_CONTAINER_CREDENTIALS_FULL_URI",
    "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI",
)

PULL_REQUEST_EVENTS = frozenset({"pull_request", "pull_request_target"})

GITHUB_ENV_VARS = ("GITHUB_REPOSITORY", "GITHUB_SHA")


class SyncState(StrEnum):
    POLLING = "polling"
    BACKING_OFF = "backing_off"
    SETTLED = "settled"
    FAILED = "failed"


class SourceType(StrEnum):
    GITHUB = "GITHUB"


class EnvironmentVariableType(StrEnum):
    PLAINTEXT = "PLAINTEXT"
    PARAMETER_STORE = "PARAMETER_STORE"
    SECRETS_MANAGER = "SECRETS_MANAGER"


class ImagePullCredentialsType(StrEnum):
    CODEBUILD = "CODEBUILD"
    SERVICE_ROLE = "SERVICE_ROLE"


class BuildStatus(StrEnum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    FAULT = "FAULT"
    TIMED_OUT = "TIMED_OUT"
    IN_PROGRESS = "IN_PROGRESS"
    STOPPED = "STOPPED"


class CommitState(StrEnum):
    SUCCESS = "success"
    PENDING = "pending"
    ERROR = "error"
    FAILURE = "failure"
