"""CodeBuild and CloudWatch Logs clients: the boto3 implementation and an in-memory mock."""

from codebuild_runner.clients.base import BuildClients, CodeBuildClient, LogsClient
from codebuild_runner.clients.mock import MockCodeBuildClient, MockLogsClient, mock_clients

__all__ = [
    "BuildClients",
    "CodeBuildClient",
    "LogsClient",
    "MockCodeBuildClient",
    "MockLogsClient",
    "mock_clients",
]
