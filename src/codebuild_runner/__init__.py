"""codebuild-runner: start an AWS CodeBuild build from CI and wait it out."""

from codebuild_runner.__version__ import __version__
from codebuild_runner.clients.base import BuildClients, CodeBuildClient, LogsClient
from codebuild_runner.core.config import PollConfig, RunnerSettings
from codebuild_runner.core.constants import BuildStatus, SyncState
from codebuild_runner.core.context import CIContext
from codebuild_runner.core.exceptions import (
    BuildFailedError,
    BuildNotFoundError,
    CodeBuildRunnerError,
    ConfigurationError,
    GitError,
    TaskListError,
    ThrottlingError,
    TransportError,
    ValidationError,
)
from codebuild_runner.core.parameters import BuildOverrides, build_parameters
from codebuild_runner.core.runner import build, ensure_succeeded, run_action, start_build
from codebuild_runner.core.synchronizer import BuildSynchronizer, synchronize
from codebuild_runner.core.types import (
    BuildHandle,
    BuildRecord,
    BuildRequest,
    EnvironmentVariable,
    LogEvent,
    LogEventBatch,
    LogStreamLocator,
)

__all__ = [
    "__version__",
    # Clients
    "BuildClients",
    "CodeBuildClient",
    "LogsClient",
    # Config
    "PollConfig",
    "RunnerSettings",
    "CIContext",
    # Constants
    "BuildStatus",
    "SyncState",
    # Exceptions
    "CodeBuildRunnerError",
    "ValidationError",
    "ConfigurationError",
    "TransportError",
    "ThrottlingError",
    "BuildNotFoundError",
    "BuildFailedError",
    "GitError",
    "TaskListError",
    # Parameters
    "BuildOverrides",
    "build_parameters",
    # Running builds
    "BuildSynchronizer",
    "synchronize",
    "start_build",
    "build",
    "ensure_succeeded",
    "run_action",
    # Types
    "BuildRequest",
    "BuildHandle",
    "BuildRecord",
    "EnvironmentVariable",
    "LogEvent",
    "LogEventBatch",
    "LogStreamLocator",
]
