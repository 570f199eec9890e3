from __future__ import annotations

from typing import Any


class CodeBuildRunnerError(Exception):
    """Base exception for all codebuild-runner errors.

    Attributes:
        code: Optional machine-readable error code (e.g. the botocore
            ``Error.Code`` such as ``"ThrottlingException"``).
        details: Arbitrary key/value context about the error.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}

    @property
    def is_retryable(self) -> bool:
        """Whether the operation that raised this error can be retried."""
        return False


class ValidationError(CodeBuildRunnerError):
    """The build request is malformed or incomplete.

    Raised by the parameter builder before any remote call is made.
    """


class ConfigurationError(CodeBuildRunnerError): ...


class GitError(CodeBuildRunnerError): ...


class TaskListError(CodeBuildRunnerError): ...


# ---------------------------------------------------------------------------
# Remote call failures
# ---------------------------------------------------------------------------


class TransportError(CodeBuildRunnerError):
    """A remote call failed for a reason other than rate limiting.

    The message of the underlying SDK error is kept verbatim.
    """


class ThrottlingError(TransportError):
    """The remote API rejected the call with a rate-limit error.

    Always retryable. The synchronizer backs off exponentially and retries.
    """

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return True


class BuildNotFoundError(CodeBuildRunnerError):
    """``batch_get_builds`` returned no record for the requested build id."""

    def __init__(self, build_id: str) -> None:
        super().__init__(
            f"Build {build_id} was not found",
            code="BuildNotFound",
            details={"build_id": build_id},
        )
        self.build_id = build_id


class BuildFailedError(CodeBuildRunnerError):
    """The build settled with a status other than ``SUCCEEDED``."""

    def __init__(self, build_id: str, build_status: str | None) -> None:
        super().__init__(
            f"Build status: {build_status}",
            code=build_status,
            details={"build_id": build_id},
        )
        self.build_id = build_id
        self.build_status = build_status
