from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import IO

import structlog

from codebuild_runner.core.types import LogEvent

logger = structlog.get_logger(__name__)


class LogPresenter(ABC):
    """Consumer of build log events, called once per poll in arrival order.

    Presenting is best effort: implementations must not raise, since a failed
    write has no bearing on whether the build finished.
    """

    @abstractmethod
    def present(self, events: Iterable[LogEvent]) -> None: ...


class StreamLogPresenter(LogPresenter):
    """Writes each event's message to a text stream (stdout by default).

    CloudWatch messages usually carry their own trailing newline; one is added
    when missing so consecutive events never run together.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> IO[str]:
        return self._stream if self._stream is not None else sys.stdout

    def present(self, events: Iterable[LogEvent]) -> None:
        stream = self.stream
        try:
            for event in events:
                message = event.message
                stream.write(message if message.endswith("\n") else message + "\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            logger.warning("logs.write_failed", error=str(exc))
