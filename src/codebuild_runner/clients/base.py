from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from codebuild_runner.core.types import BuildHandle, BuildRecord, BuildRequest, LogEventBatch


class CodeBuildClient(ABC):
    """Build control plane: start builds and read their current state."""

    @abstractmethod
    async def start_build(self, request: BuildRequest) -> BuildHandle: ...

    @abstractmethod
    async def batch_get_builds(self, ids: list[str]) -> list[BuildRecord]:
        """Return the records for *ids*; unknown ids are simply absent."""
        ...


class LogsClient(ABC):
    """Log retrieval for a single CloudWatch log stream."""

    @abstractmethod
    async def get_log_events(
        self,
        group_name: str,
        stream_name: str,
        next_token: str | None = None,
    ) -> LogEventBatch:
        """Return events after *next_token* (from the head when ``None``)."""
        ...


@dataclass(frozen=True)
class BuildClients:
    """The two clients a build needs, plus whether log output is suppressed.

    Attributes:
        code_build: Control-plane client.
        logs: Log-retrieval client.
        hide_logs: When true the synchronizer does not stream log events.
        region: AWS region, used for console links.
    """

    code_build: CodeBuildClient
    logs: LogsClient
    hide_logs: bool = False
    region: str | None = None

    def describe(self) -> dict[str, Any]:
        return {
            "code_build": type(self.code_build).__name__,
            "logs": type(self.logs).__name__,
            "hide_logs": self.hide_logs,
            "region": self.region,
        }
