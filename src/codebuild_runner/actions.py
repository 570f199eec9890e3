"""Helpers for running inside a GitHub Actions job."""

from __future__ import annotations

import os
import uuid
from collections.abc import Mapping
from pathlib import Path

import structlog

from codebuild_runner.core.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

_TRUE_VALUES = {"true", "True", "TRUE"}
_FALSE_VALUES = {"false", "False", "FALSE"}


def _environ(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def input_env_name(name: str) -> str:
    """GitHub exposes ``with:`` inputs as ``INPUT_<NAME>``; hyphens are kept."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(
    name: str, env: Mapping[str, str] | None = None, *, required: bool = False
) -> str:
    """Return the trimmed value of action input *name* (``""`` when unset).

    Raises:
        ConfigurationError: If *required* and the input is empty.
    """
    value = _environ(env).get(input_env_name(name), "").strip()
    if required and not value:
        raise ConfigurationError(f"Input required and not supplied: {name}")
    return value


def get_bool_input(name: str, env: Mapping[str, str] | None = None) -> bool:
    """Parse a YAML 1.2 core-schema boolean input; unset means ``False``."""
    value = get_input(name, env)
    if not value or value in _FALSE_VALUES:
        return False
    if value in _TRUE_VALUES:
        return True
    raise ConfigurationError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}",
        details={"value": value},
    )


def get_float_input(
    name: str, env: Mapping[str, str] | None = None, *, default: float
) -> float:
    value = get_input(name, env)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"Input {name} must be a number, got {value!r}"
        ) from exc


def set_output(name: str, value: str, env: Mapping[str, str] | None = None) -> None:
    """Publish a step output through the ``GITHUB_OUTPUT`` file.

    Outside of Actions (no ``GITHUB_OUTPUT``) the output is only logged.
    """
    output_path = _environ(env).get("GITHUB_OUTPUT")
    if not output_path:
        logger.info("action.output", name=name, value=value)
        return

    if "\n" in value:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        entry = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    else:
        entry = f"{name}={value}\n"
    with Path(output_path).open("a", encoding="utf-8") as fh:
        fh.write(entry)
