from codebuild_runner.resilience.backoff import BackoffPolicy, is_throttling

__all__ = ["BackoffPolicy", "is_throttling"]
