"""Tests for core/parameters.py: CI context and inputs to a BuildRequest."""
from __future__ import annotations

from collections.abc import Callable

import pytest

from codebuild_runner.core.constants import ImagePullCredentialsType, SourceType
from codebuild_runner.core.context import CIContext
from codebuild_runner.core.exceptions import ConfigurationError, ValidationError
from codebuild_runner.core.parameters import (
    NO_SOURCE_VERSION,
    BuildOverrides,
    build_parameters,
    inputs_from_action,
    parse_env_passthrough,
    poll_config_from,
)

ActionEnv = Callable[..., dict[str, str]]


# ---------------------------------------------------------------------------
# parse_env_passthrough
# ---------------------------------------------------------------------------


def test_passthrough_splits_and_trims() -> None:
    assert parse_env_passthrough(" one,\n two ,three,, ") == ["one", "two", "three"]


def test_passthrough_accepts_lists_and_drops_duplicates() -> None:
    assert parse_env_passthrough(["a, b", "c", "a"]) == ["a", "b", "c"]


def test_passthrough_empty() -> None:
    assert parse_env_passthrough(None) == []
    assert parse_env_passthrough("") == []


# ---------------------------------------------------------------------------
# build_parameters
# ---------------------------------------------------------------------------


def test_basic_parameters(push_context: CIContext) -> None:
    request = build_parameters(push_context, BuildOverrides(project_name="widgets"))

    assert request.project_name == "widgets"
    assert request.source_version == "1234abcd"
    assert request.source_type_override == SourceType.GITHUB
    assert request.source_location_override == "https://github.com/octo/widgets.git"
    assert request.buildspec_override is None
    assert [(v.name, v.value) for v in request.environment_variables_override] == [
        ("GITHUB_REPOSITORY", "octo/widgets"),
        ("GITHUB_SHA", "1234abcd"),
    ]
    assert all(str(v.type) == "PLAINTEXT" for v in request.environment_variables_override)


def test_overrides_are_carried_over(push_context: CIContext) -> None:
    request = build_parameters(
        push_context,
        BuildOverrides(
            project_name="widgets",
            buildspec_override="ci/buildspec.yml",
            compute_type_override="BUILD_GENERAL1_LARGE",
            environment_type_override="LINUX_CONTAINER",
            image_override="aws/codebuild/standard:7.0",
            image_pull_credentials_type_override=ImagePullCredentialsType.CODEBUILD,
            hide_cloudwatch_logs=True,
        ),
    )

    assert request.buildspec_override == "ci/buildspec.yml"
    assert request.compute_type_override == "BUILD_GENERAL1_LARGE"
    assert request.environment_type_override == "LINUX_CONTAINER"
    assert request.image_override == "aws/codebuild/standard:7.0"
    assert request.image_pull_credentials_type_override == ImagePullCredentialsType.CODEBUILD
    assert request.hide_cloudwatch_logs


def test_empty_string_overrides_become_unset(push_context: CIContext) -> None:
    request = build_parameters(
        push_context, BuildOverrides(project_name="widgets", buildspec_override="")
    )
    assert "buildspecOverride" not in request.to_start_build_kwargs()


def test_passthrough_variables_come_first_and_missing_ones_are_skipped() -> None:
    context = CIContext(
        owner="octo",
        repo="widgets",
        sha="1234abcd",
        env={"GITHUB_REPOSITORY": "octo/widgets", "GITHUB_SHA": "1234abcd", "one": "1", "two": "2"},
    )
    request = build_parameters(
        context,
        BuildOverrides(project_name="widgets", env_passthrough=["one", "missing", "two"]),
    )
    assert [v.name for v in request.environment_variables_override] == [
        "one",
        "two",
        "GITHUB_REPOSITORY",
        "GITHUB_SHA",
    ]


def test_passthrough_of_github_var_is_not_duplicated(push_context: CIContext) -> None:
    request = build_parameters(
        push_context, BuildOverrides(project_name="widgets", env_passthrough=["GITHUB_SHA"])
    )
    assert [v.name for v in request.environment_variables_override] == [
        "GITHUB_SHA",
        "GITHUB_REPOSITORY",
    ]


def test_disable_github_env_vars(push_context: CIContext) -> None:
    request = build_parameters(
        push_context, BuildOverrides(project_name="widgets", disable_github_env_vars=True)
    )
    assert request.environment_variables_override == ()


def test_disable_source_override_leaves_source_unset() -> None:
    context = CIContext(env={})
    request = build_parameters(
        context, BuildOverrides(project_name="widgets", disable_source_override=True)
    )
    kwargs = request.to_start_build_kwargs()
    assert "sourceVersion" not in kwargs
    assert "sourceTypeOverride" not in kwargs
    assert "sourceLocationOverride" not in kwargs


def test_pull_request_uses_head_sha() -> None:
    context = CIContext(
        event_name="pull_request",
        owner="octo",
        repo="widgets",
        sha="merge-commit",
        payload={"pull_request": {"head": {"sha": "head-sha"}}},
    )
    request = build_parameters(context, BuildOverrides(project_name="widgets"))
    assert request.source_version == "head-sha"


def test_explicit_source_version_wins(push_context: CIContext) -> None:
    request = build_parameters(
        push_context, BuildOverrides(project_name="widgets", source_version="feature-branch")
    )
    assert request.source_version == "feature-branch"


def test_no_source_version_is_an_error() -> None:
    context = CIContext(event_name="pull_request", owner="octo", repo="widgets", sha="x")
    with pytest.raises(ValidationError, match=NO_SOURCE_VERSION):
        build_parameters(context, BuildOverrides(project_name="widgets"))


def test_missing_repository_is_an_error() -> None:
    context = CIContext(sha="1234abcd")
    with pytest.raises(ValidationError, match="Repository owner and name"):
        build_parameters(context, BuildOverrides(project_name="widgets"))


def test_missing_project_name_is_an_error(push_context: CIContext) -> None:
    with pytest.raises(ValidationError, match="project name is required"):
        build_parameters(push_context, BuildOverrides())


# ---------------------------------------------------------------------------
# inputs_from_action
# ---------------------------------------------------------------------------


def test_inputs_defaults(action_env: ActionEnv) -> None:
    overrides, poll_config = inputs_from_action(CIContext(env=action_env(project_name="widgets")))

    assert overrides.project_name == "widgets"
    assert overrides.buildspec_override is None
    assert overrides.env_passthrough == []
    assert not overrides.hide_cloudwatch_logs
    assert not overrides.disable_source_override
    assert not overrides.disable_github_env_vars
    assert poll_config.update_interval == 30.0
    assert poll_config.update_back_off == 15.0


def test_inputs_all_set(action_env: ActionEnv) -> None:
    env = action_env(
        project_name="widgets",
        buildspec_override="ci/buildspec.yml",
        compute_type_override="BUILD_GENERAL1_SMALL",
        environment_type_override="ARM_CONTAINER",
        image_override="img",
        image_pull_credentials_type_override="SERVICE_ROLE",
        env_vars_for_codebuild="one,\n  two",
        hide_cloudwatch_logs="true",
        disable_source_override="True",
        disable_github_env_vars="TRUE",
        update_interval="10",
        update_back_off="2.5",
    )
    overrides, poll_config = inputs_from_action(CIContext(env=env))

    assert overrides.buildspec_override == "ci/buildspec.yml"
    assert overrides.compute_type_override == "BUILD_GENERAL1_SMALL"
    assert overrides.environment_type_override == "ARM_CONTAINER"
    assert overrides.image_override == "img"
    assert overrides.image_pull_credentials_type_override == ImagePullCredentialsType.SERVICE_ROLE
    assert overrides.env_passthrough == ["one", "two"]
    assert overrides.hide_cloudwatch_logs
    assert overrides.disable_source_override
    assert overrides.disable_github_env_vars
    assert poll_config.update_interval == 10.0
    assert poll_config.update_back_off == 2.5


def test_inputs_missing_project_name(action_env: ActionEnv) -> None:
    with pytest.raises(ValidationError, match="project-name"):
        inputs_from_action(CIContext(env=action_env()))


def test_inputs_bad_pull_credentials_type(action_env: ActionEnv) -> None:
    env = action_env(project_name="widgets", image_pull_credentials_type_override="ROOT")
    with pytest.raises(ConfigurationError, match="ROOT"):
        inputs_from_action(CIContext(env=env))


def test_inputs_bad_boolean(action_env: ActionEnv) -> None:
    env = action_env(project_name="widgets", hide_cloudwatch_logs="yes")
    with pytest.raises(ConfigurationError, match="hide-cloudwatch-logs"):
        inputs_from_action(CIContext(env=env))


def test_inputs_negative_interval_is_a_configuration_error(action_env: ActionEnv) -> None:
    env = action_env(project_name="widgets", update_interval="-5")
    with pytest.raises(ConfigurationError, match="update-interval") as info:
        inputs_from_action(CIContext(env=env))
    assert info.value.details["errors"][0]["loc"] == ("update_interval",)


def test_poll_config_from_names_every_bad_field() -> None:
    with pytest.raises(ConfigurationError, match=r"\(update-interval, update-back-off\)"):
        poll_config_from(-1.0, -2.0)
    assert poll_config_from(0.0, 0.0).update_back_off == 0.0
