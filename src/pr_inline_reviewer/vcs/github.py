"""
GitHub API Client

Handles GitHub API authentication, rate limiting, and communication for
pull request diffs and review comments.
"""

import logging
from datetime import datetime
from typing import Dict, List

import requests

from ..models.review import ExistingComment, InlineAddress
from .base import VCSClient, VCSAPIError, RateLimitExceeded


logger = logging.getLogger(__name__)


DIFF_MEDIA_TYPE = 'application/vnd.github.v3.diff'


class GitHubClient(VCSClient):
    """
    GitHub API client with authentication, rate limiting, and error handling.

    Inline comments are addressed by diff position.
    """

    provider_type = "github"

    def __init__(self, token: str, base_url: str = "https://api.github.com", timeout_seconds: int = 30):
        super().__init__(token, base_url, timeout_seconds)
        self.rate_limit_remaining = 5000
        self.rate_limit_reset = datetime.now()

    def _auth_headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.token}',
            'Accept': 'application/vnd.github.v3+json',
        }

    def _check_rate_limit(self) -> None:
        """Check and handle GitHub API rate limits."""
        if self.rate_limit_remaining <= 10 and datetime.now() < self.rate_limit_reset:
            wait_time = (self.rate_limit_reset - datetime.now()).total_seconds()
            if wait_time > 0:
                logger.warning(f"Rate limit low ({self.rate_limit_remaining}), resets in {wait_time:.1f}s")
                raise RateLimitExceeded(self.rate_limit_reset)

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        if 'X-RateLimit-Remaining' in response.headers:
            self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

        if 'X-RateLimit-Reset' in response.headers:
            reset_timestamp = int(response.headers['X-RateLimit-Reset'])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        self._check_rate_limit()
        response = super()._make_request(method, endpoint, **kwargs)
        self._update_rate_limit(response)
        return response

    def get_pull_request(self, repo: str, number: int) -> Dict:
        """
        Get pull request information.

        Args:
            repo: Repository in owner/repo form
            number: Pull request number

        Returns:
            Pull request data
        """
        logger.info(f"Fetching PR {repo}#{number}")
        response = self._make_request('GET', f'/repos/{repo}/pulls/{number}')
        return response.json()

    def get_diff(self, repo: str, number: int) -> str:
        logger.info(f"Fetching diff for {repo}#{number}")
        response = self._make_request(
            'GET', f'/repos/{repo}/pulls/{number}',
            headers={'Accept': DIFF_MEDIA_TYPE}
        )
        return response.text

    def get_head_sha(self, repo: str, number: int) -> str:
        pr_data = self.get_pull_request(repo, number)
        head_sha = (pr_data.get('head') or {}).get('sha')
        if not head_sha:
            raise VCSAPIError(f"PR head sha is empty for {repo}#{number}")
        return head_sha

    def post_comment(self, repo: str, number: int, body: str) -> None:
        logger.info(f"Posting comment to {repo}#{number}")
        self._make_request('POST', f'/repos/{repo}/issues/{number}/comments', json={'body': body})

    def post_inline_comment(
        self,
        repo: str,
        number: int,
        commit_sha: str,
        path: str,
        address: InlineAddress,
        body: str
    ) -> None:
        if not address.position:
            raise VCSAPIError(f"GitHub inline comments need a diff position ({path})")

        logger.debug(f"Posting inline comment to {repo}#{number} {path} position {address.position}")
        self._make_request(
            'POST', f'/repos/{repo}/pulls/{number}/comments',
            json={
                'body': body,
                'commit_id': commit_sha,
                'path': path,
                'position': address.position,
            }
        )

    def get_inline_comments(self, repo: str, number: int) -> List[ExistingComment]:
        logger.info(f"Fetching review comments for {repo}#{number}")
        comments = []
        for item in self._get_paginated(f'/repos/{repo}/pulls/{number}/comments'):
            line = item.get('line') or item.get('original_line')
            if item.get('path') and line:
                comments.append(ExistingComment(path=item['path'], line=int(line)))
        return comments
