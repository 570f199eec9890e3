from __future__ import annotations

from collections.abc import Iterable, Mapping

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from codebuild_runner import actions
from codebuild_runner.core.config import PollConfig
from codebuild_runner.core.constants import (
    GITHUB_ENV_VARS,
    EnvironmentVariableType,
    ImagePullCredentialsType,
    SourceType,
)
from codebuild_runner.core.context import CIContext
from codebuild_runner.core.exceptions import ConfigurationError, ValidationError
from codebuild_runner.core.types import BuildRequest, EnvironmentVariable

logger = structlog.get_logger(__name__)

NO_SOURCE_VERSION = "No source version could be evaluated."


class BuildOverrides(BaseModel):
    """User-supplied knobs layered on top of the CI context."""

    project_name: str | None = None
    source_version: str | None = None
    buildspec_override: str | None = None
    compute_type_override: str | None = None
    environment_type_override: str | None = None
    image_override: str | None = None
    image_pull_credentials_type_override: ImagePullCredentialsType | None = None
    env_passthrough: list[str] = Field(default_factory=list)
    hide_cloudwatch_logs: bool = False
    disable_source_override: bool = False
    disable_github_env_vars: bool = False


def parse_env_passthrough(names: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated list of variable names.

    Whitespace (including newlines) around each name is dropped, as are empty
    entries. Lists are flattened the same way so ``["a, b", "c"]`` works too.
    """
    if names is None:
        return []
    chunks = [names] if isinstance(names, str) else list(names)
    result: list[str] = []
    for chunk in chunks:
        for name in chunk.split(","):
            name = name.strip()
            if name and name not in result:
                result.append(name)
    return result


def _environment_variables(
    env: Mapping[str, str], passthrough: list[str], disable_github_env_vars: bool
) -> tuple[EnvironmentVariable, ...]:
    names = list(passthrough)
    if not disable_github_env_vars:
        names.extend(n for n in GITHUB_ENV_VARS if n not in names)

    variables = []
    for name in names:
        value = env.get(name)
        if value is None:
            logger.debug("parameters.env_var_skipped", name=name)
            continue
        variables.append(
            EnvironmentVariable(
                name=name, value=value, type=EnvironmentVariableType.PLAINTEXT
            )
        )
    return tuple(variables)


def build_parameters(context: CIContext, overrides: BuildOverrides) -> BuildRequest:
    """Map CI context and user overrides to a validated :class:`BuildRequest`.

    Raises:
        ValidationError: If the project name is missing, or the source
            revision / repository cannot be determined while the source
            override is active.
    """
    if not overrides.project_name:
        raise ValidationError("A CodeBuild project name is required.")

    source_fields: dict[str, object] = {}
    if not overrides.disable_source_override:
        source_version = overrides.source_version or context.source_version
        if not source_version:
            raise ValidationError(NO_SOURCE_VERSION)
        if not (context.owner and context.repo):
            raise ValidationError(
                "Repository owner and name are required to override the build source."
            )
        source_fields = {
            "source_version": source_version,
            "source_type_override": SourceType.GITHUB,
            "source_location_override": (
                f"https://github.com/{context.owner}/{context.repo}.git"
            ),
        }

    request = BuildRequest(
        project_name=overrides.project_name,
        buildspec_override=overrides.buildspec_override or None,
        compute_type_override=overrides.compute_type_override or None,
        environment_type_override=overrides.environment_type_override or None,
        image_override=overrides.image_override or None,
        image_pull_credentials_type_override=overrides.image_pull_credentials_type_override,
        environment_variables_override=_environment_variables(
            context.env,
            parse_env_passthrough(overrides.env_passthrough),
            overrides.disable_github_env_vars,
        ),
        hide_cloudwatch_logs=overrides.hide_cloudwatch_logs,
        disable_source_override=overrides.disable_source_override,
        disable_github_env_vars=overrides.disable_github_env_vars,
        **source_fields,  # type: ignore[arg-type]
    )
    logger.debug(
        "parameters.built",
        project_name=request.project_name,
        source_version=request.source_version,
        env_vars=[v.name for v in request.environment_variables_override],
    )
    return request


def poll_config_from(update_interval: float, update_back_off: float) -> PollConfig:
    """Build a :class:`PollConfig`, rejecting negative intervals.

    Raises:
        ConfigurationError: If either value is out of range.
    """
    try:
        return PollConfig(update_interval=update_interval, update_back_off=update_back_off)
    except PydanticValidationError as exc:
        fields = ", ".join(
            str(err["loc"][0]).replace("_", "-") for err in exc.errors() if err["loc"]
        )
        raise ConfigurationError(
            f"Invalid polling settings ({fields}): values must be zero or more seconds",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def inputs_from_action(context: CIContext) -> tuple[BuildOverrides, PollConfig]:
    """Read the action's ``with:`` inputs from *context.env*.

    Interval inputs are in seconds.

    Raises:
        ValidationError: If ``project-name`` is not supplied.
        ConfigurationError: If an input has an invalid value.
    """
    env = context.env
    project_name = actions.get_input("project-name", env)
    if not project_name:
        raise ValidationError("Input required and not supplied: project-name")

    pull_type = actions.get_input("image-pull-credentials-type-override", env)
    try:
        pull_credentials = ImagePullCredentialsType(pull_type) if pull_type else None
    except ValueError as exc:
        raise ConfigurationError(
            f"Unsupported image-pull-credentials-type-override: {pull_type}"
        ) from exc

    overrides = BuildOverrides(
        project_name=project_name,
        buildspec_override=actions.get_input("buildspec-override", env) or None,
        compute_type_override=actions.get_input("compute-type-override", env) or None,
        environment_type_override=(
            actions.get_input("environment-type-override", env) or None
        ),
        image_override=actions.get_input("image-override", env) or None,
        image_pull_credentials_type_override=pull_credentials,
        env_passthrough=parse_env_passthrough(
            actions.get_input("env-vars-for-codebuild", env)
        ),
        hide_cloudwatch_logs=actions.get_bool_input("hide-cloudwatch-logs", env),
        disable_source_override=actions.get_bool_input("disable-source-override", env),
        disable_github_env_vars=actions.get_bool_input("disable-github-env-vars", env),
    )
    poll_config = poll_config_from(
        update_interval=actions.get_float_input("update-interval", env, default=30.0),
        update_back_off=actions.get_float_input("update-back-off", env, default=15.0),
    )
    return overrides, poll_config
