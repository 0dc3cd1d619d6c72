"""
Hosting Provider Integration

This module provides GitHub and GitLab clients for fetching diffs and
posting review comments.
"""

from .base import VCSClient, VCSAPIError, RateLimitExceeded
from .github import GitHubClient
from .gitlab import GitLabClient


def create_client(provider_type: str, config, token=None) -> VCSClient:
    """
    Create the client for a provider.

    Args:
        provider_type: "github" or "gitlab"
        config: AppConfig with provider settings
        token: Token overriding the configured one

    Returns:
        VCSClient instance
    """
    if provider_type == GitHubClient.provider_type:
        return GitHubClient(
            token or config.vcs.github_token,
            base_url=config.vcs.github_api_url,
            timeout_seconds=config.vcs.timeout_seconds,
        )
    if provider_type == GitLabClient.provider_type:
        return GitLabClient(
            token or config.vcs.gitlab_token,
            base_url=config.vcs.gitlab_base_url,
            timeout_seconds=config.vcs.timeout_seconds,
        )
    raise ValueError(f"Unsupported provider: {provider_type}")


__all__ = ['VCSClient', 'VCSAPIError', 'RateLimitExceeded', 'GitHubClient', 'GitLabClient', 'create_client']
