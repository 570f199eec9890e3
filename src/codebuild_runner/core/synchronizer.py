"""Build-completion synchronizer.

Polls CodeBuild and CloudWatch Logs until a build is verifiably finished.
"Finished" means two things at once: CodeBuild reports an ``endTime`` *and*
the most recent log poll came back empty. CodeBuild can publish the end time
before the last log lines reach CloudWatch, so one empty poll after the end
time is required before the build counts as settled. This is a best-effort
drain against eventual consistency between the two services, not a proof
that no further events will ever appear.

Throttling is the only recoverable failure. It triggers an exponential
back-off (``update_back_off * 2 ** n``) that resets after the next successful
poll; the regular cadence between polls never changes. Every other error
aborts the wait and is re-raised as-is.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

from codebuild_runner.clients.base import BuildClients
from codebuild_runner.core.config import PollConfig
from codebuild_runner.core.constants import SyncState
from codebuild_runner.core.exceptions import BuildNotFoundError
from codebuild_runner.core.logs import LogPresenter, StreamLogPresenter
from codebuild_runner.core.types import (
    BuildHandle,
    BuildRecord,
    LogEventBatch,
    LogStreamLocator,
)
from codebuild_runner.resilience.backoff import BackoffPolicy, is_throttling

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class BuildSynchronizer:
    """Single-build polling state machine.

    States move ``POLLING`` -> (``BACKING_OFF`` -> ``POLLING``)* -> ``SETTLED``
    or ``FAILED``. One instance drives one build; it keeps only the log cursor,
    the throttling retry counter and the poll counter.

    Example::

        sync = BuildSynchronizer(clients, PollConfig(update_interval=10))
        record = await sync.synchronize(handle)
        print(record.build_status)
    """

    def __init__(
        self,
        clients: BuildClients,
        poll_config: PollConfig | None = None,
        presenter: LogPresenter | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._clients = clients
        self._config = poll_config or PollConfig()
        self._presenter = presenter or StreamLogPresenter()
        self._sleep = sleep
        self._backoff = BackoffPolicy(
            backoff_base=self._config.update_back_off,
            backoff_max=self._config.back_off_max,
            jitter=self._config.jitter,
        )
        self._locator: LogStreamLocator | None = None
        self._next_token: str | None = None
        self._link_reported = False

        self.state = SyncState.POLLING
        self.retry_count = 0
        self.poll_count = 0

    async def synchronize(self, handle: BuildHandle) -> BuildRecord:
        """Block until the build behind *handle* has settled.

        Returns:
            The final :class:`BuildRecord`, with ``end_time`` set.

        Raises:
            BuildNotFoundError: If CodeBuild does not know the build id.
            Exception: Any non-throttling error from either client, unchanged.
        """
        self.state = SyncState.POLLING
        logger.info("sync.started", build_id=handle.id)

        while True:
            try:
                record, batch = await self._poll(handle.id)
            except Exception as exc:
                if not is_throttling(exc):
                    self.state = SyncState.FAILED
                    self.retry_count = 0
                    logger.error(
                        "sync.failed",
                        build_id=handle.id,
                        polls=self.poll_count,
                        error=str(exc),
                    )
                    raise
                await self._back_off(handle.id, exc)
                continue

            self.retry_count = 0
            self._presenter.present(batch.events)

            if record.is_finished and batch.is_empty:
                self.state = SyncState.SETTLED
                logger.info(
                    "sync.settled",
                    build_id=record.id,
                    build_status=record.build_status,
                    polls=self.poll_count,
                )
                return record

            if record.is_finished:
                logger.debug(
                    "sync.draining", build_id=record.id, events=len(batch.events)
                )
            await self._sleep(self._config.update_interval)

    async def _poll(self, build_id: str) -> tuple[BuildRecord, LogEventBatch]:
        self.poll_count += 1
        records = await self._clients.code_build.batch_get_builds([build_id])
        if not records:
            raise BuildNotFoundError(build_id)
        record = records[0]
        batch = await self._fetch_logs(record.logs)
        logger.debug(
            "sync.polled",
            build_id=build_id,
            poll=self.poll_count,
            phase=record.current_phase,
            finished=record.is_finished,
            events=len(batch.events),
        )
        return record, batch

    async def _fetch_logs(self, locator: LogStreamLocator) -> LogEventBatch:
        group, stream = locator.group_name, locator.stream_name
        if not group or not stream:
            return LogEventBatch()

        if self._clients.hide_logs:
            self._report_link(locator)
            return LogEventBatch()

        if locator != self._locator:
            # Cursors are per stream.
            self._locator = locator
            self._next_token = None

        batch = await self._clients.logs.get_log_events(group, stream, self._next_token)
        if batch.next_forward_token:
            self._next_token = batch.next_forward_token
        return batch

    async def _back_off(self, build_id: str, exc: Exception) -> None:
        self.state = SyncState.BACKING_OFF
        delay = self._backoff.compute_delay(self.retry_count)
        self.retry_count += 1
        logger.warning(
            "sync.throttled",
            build_id=build_id,
            retry=self.retry_count,
            delay=delay,
            error=str(exc),
        )
        await self._sleep(delay)
        self.state = SyncState.POLLING

    def _report_link(self, locator: LogStreamLocator) -> None:
        if self._link_reported or not self._clients.region:
            return
        self._link_reported = True
        logger.info(
            "sync.logs_hidden",
            logs_url=locator.console_url(self._clients.region),
        )


async def synchronize(
    handle: BuildHandle,
    clients: BuildClients,
    poll_config: PollConfig | None = None,
    presenter: LogPresenter | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> BuildRecord:
    """Wait for the build behind *handle* to settle and return its final record.

    Convenience wrapper around :class:`BuildSynchronizer`.
    """
    synchronizer = BuildSynchronizer(clients, poll_config, presenter, sleep=sleep)
    return await synchronizer.synchronize(handle)
