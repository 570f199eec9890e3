from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

_TRUTHY = {"1", "true", "yes", "on"}


class PollConfig(BaseModel):
    """Cadence of the build-completion poll loop, in seconds.

    ``update_interval`` is the fixed sleep between polls. ``update_back_off``
    is the base of the exponential sleep used only after a throttling error.
    ``back_off_max`` and ``jitter`` are off by default, which keeps the
    back-off at exactly ``update_back_off * 2 ** n``.
    """

    model_config = ConfigDict(frozen=True)

    update_interval: float = Field(default=30.0, ge=0.0)
    update_back_off: float = Field(default=15.0, ge=0.0)
    back_off_max: float | None = Field(default=None, ge=0.0)
    jitter: bool = False


class RunnerSettings(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False
    region: str | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> RunnerSettings:
        """Create settings from ``CODEBUILD_RUNNER_*`` environment variables.

        * ``CODEBUILD_RUNNER_LOG_LEVEL`` -> ``log_level``
        * ``CODEBUILD_RUNNER_LOG_JSON`` -> ``log_json`` (``1``/``true``/``yes``/``on``)
        * ``AWS_REGION`` or ``AWS_DEFAULT_REGION`` -> ``region``

        Unset or empty variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}

        log_level = env.get("CODEBUILD_RUNNER_LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level.upper()

        log_json = env.get("CODEBUILD_RUNNER_LOG_JSON")
        if log_json:
            kwargs["log_json"] = log_json.strip().lower() in _TRUTHY

        region = env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION")
        if region:
            kwargs["region"] = region

        return cls(**kwargs)
