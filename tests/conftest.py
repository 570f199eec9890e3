"""Shared test fixtures."""
from __future__ import annotations

from collections.abc import Callable

import pytest

from codebuild_runner.core.context import CIContext
from codebuild_runner.core.synchronizer import Sleep


@pytest.fixture
def delays() -> list[float]:
    """Every delay handed to the ``sleep`` fixture, in order."""
    return []


@pytest.fixture
def sleep(delays: list[float]) -> Sleep:
    """Stand-in for ``asyncio.sleep`` that returns at once and records the delay."""

    async def _sleep(delay: float) -> None:
        delays.append(delay)

    return _sleep


@pytest.fixture
def push_context() -> CIContext:
    return CIContext(
        event_name="push",
        owner="octo",
        repo="widgets",
        sha="1234abcd",
        env={"GITHUB_REPOSITORY": "octo/widgets", "GITHUB_SHA": "1234abcd"},
    )


@pytest.fixture
def action_env() -> Callable[..., dict[str, str]]:
    """Build an Actions-style environment; keyword ``update_interval`` becomes
    ``INPUT_UPDATE-INTERVAL`` and so on."""

    def _make(**inputs: str) -> dict[str, str]:
        env = {"GITHUB_REPOSITORY": "octo/widgets", "GITHUB_SHA": "1234abcd"}
        for name, value in inputs.items():
            env[f"INPUT_{name.replace('_', '-').upper()}"] = value
        return env

    return _make
