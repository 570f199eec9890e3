from __future__ import annotations

from typing import Any, Callable, Union

from codebuild_runner.clients.base import BuildClients, CodeBuildClient, LogsClient
from codebuild_runner.core.types import BuildHandle, BuildRecord, BuildRequest, LogEventBatch

# A scripted reply: a value, an exception to raise, or a callable producing either.
Reply = Union[Any, BaseException, Callable[[], Any]]


def _resolve(reply: Reply) -> Any:
    if isinstance(reply, BaseException):
        raise reply
    if callable(reply):
        return _resolve(reply())
    return reply


class _Script:
    """Replies handed out in order; the last one repeats once the script runs dry."""

    def __init__(self, replies: list[Reply] | None = None) -> None:
        self._replies: list[Reply] = list(replies or [])

    def push(self, *replies: Reply) -> None:
        self._replies.extend(replies)

    def next(self) -> Any:
        if not self._replies:
            raise KeyError("mock client: no reply scripted")
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        return _resolve(reply)


class MockCodeBuildClient(CodeBuildClient):
    """In-memory CodeBuild client for testing.

    Usage::

        code_build = MockCodeBuildClient(
            builds=[
                [{"id": "b1"}],                         # raw API dicts
                [BuildRecord(id="b1", end_time="t")],   # or records
                ThrottlingError("Rate exceeded"),       # or errors to raise
            ]
        )
    """

    def __init__(
        self,
        builds: list[Reply] | None = None,
        start: Reply | None = None,
    ) -> None:
        self._builds = _Script(builds)
        self._start = start
        self.calls: list[tuple[str, Any]] = []

    def register_builds(self, *replies: Reply) -> None:
        self._builds.push(*replies)

    async def start_build(self, request: BuildRequest) -> BuildHandle:
        self.calls.append(("start_build", request))
        reply = _resolve(self._start) if self._start is not None else None
        if reply is None:
            return BuildHandle(id=f"{request.project_name}:mock-build")
        if isinstance(reply, dict):
            return BuildRecord.from_api(reply).to_handle()
        if isinstance(reply, BuildRecord):
            return reply.to_handle()
        return reply

    async def batch_get_builds(self, ids: list[str]) -> list[BuildRecord]:
        self.calls.append(("batch_get_builds", list(ids)))
        reply = self._builds.next()
        return [
            b if isinstance(b, BuildRecord) else BuildRecord.from_api(b)
            for b in reply or []
        ]

    def call_count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


class MockLogsClient(LogsClient):
    """In-memory CloudWatch Logs client; replies may be raw API dicts or batches."""

    def __init__(self, events: list[Reply] | None = None) -> None:
        self._events = _Script(events if events is not None else [None])
        self.calls: list[tuple[str, str, str | None]] = []

    def register_events(self, *replies: Reply) -> None:
        self._events.push(*replies)

    async def get_log_events(
        self,
        group_name: str,
        stream_name: str,
        next_token: str | None = None,
    ) -> LogEventBatch:
        self.calls.append((group_name, stream_name, next_token))
        reply = self._events.next()
        if isinstance(reply, LogEventBatch):
            return reply
        return LogEventBatch.from_api(reply)


def mock_clients(
    builds: list[Reply] | None = None,
    events: list[Reply] | None = None,
    *,
    hide_logs: bool = False,
    region: str | None = "us-west-2",
) -> BuildClients:
    return BuildClients(
        code_build=MockCodeBuildClient(builds=builds),
        logs=MockLogsClient(events=events),
        hide_logs=hide_logs,
        region=region,
    )
