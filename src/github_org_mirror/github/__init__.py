"""GitHub API client module.

This module provides:
- GitHubClient: Async GitHub GraphQL client (githubkit transport)
- RequestExecutor: Backoff and rate-limit aware request driver
- Exception taxonomy shared by the client, executor and sync layers
"""

from .client import GitHubClient
from .exceptions import (
    ConfigurationError,
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubGraphQLError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubRetryableError,
    GitHubTransientError,
    NodeResyncError,
)
from .retry import BackoffPolicy, RateLimitPolicy, RequestExecutor

__all__ = [
    # Client
    "GitHubClient",
    # Retries
    "BackoffPolicy",
    "RateLimitPolicy",
    "RequestExecutor",
    # Exceptions
    "ConfigurationError",
    "GitHubAuthenticationError",
    "GitHubClientError",
    "GitHubGraphQLError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubRetryableError",
    "GitHubTransientError",
    "NodeResyncError",
]
