"""Exponential back-off for rate-limited AWS calls."""

from __future__ import annotations

import random

from pydantic import BaseModel, Field

from codebuild_runner.core.constants import THROTTLING_MARKER
from codebuild_runner.core.exceptions import CodeBuildRunnerError, ThrottlingError


def is_throttling(exc: BaseException) -> bool:
    """Whether *exc* is a rate-limit rejection.

    Throttling is recognised by type, by an explicit ``is_retryable`` flag on
    SDK errors, or by the ``"Rate exceeded"`` marker in the message, which is
    what CodeBuild and CloudWatch Logs put in their throttling responses.
    """
    if isinstance(exc, ThrottlingError):
        return True
    if isinstance(exc, CodeBuildRunnerError) and exc.is_retryable:
        return True
    return THROTTLING_MARKER in str(exc)


class BackoffPolicy(BaseModel):
    """Unbounded exponential back-off.

    Attributes:
        backoff_base: Delay in seconds before the first retry.
        backoff_max: Optional ceiling on a single delay. ``None`` lets the
            delay keep doubling.
        jitter: If ``True``, the delay is drawn uniformly from ``[0, delay]``.
    """

    backoff_base: float = Field(default=15.0, ge=0.0)
    backoff_max: float | None = Field(default=None, ge=0.0)
    jitter: bool = False

    def compute_delay(self, attempt: int) -> float:
        """Delay for the given attempt (0-indexed): ``backoff_base * 2 ** attempt``."""
        delay: float = self.backoff_base * (2 ** attempt)
        if self.backoff_max is not None:
            delay = min(delay, self.backoff_max)
        if self.jitter:
            delay = random.uniform(0, delay)  # noqa: S311
        return delay
