"""
VCS Client Base

Common interface and errors for change-hosting providers.
"""

import time
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.review import ExistingComment, InlineAddress


logger = logging.getLogger(__name__)


class VCSAPIError(Exception):
    """Hosting provider API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class RateLimitExceeded(VCSAPIError):
    """Hosting provider API rate limit exceeded"""
    def __init__(self, reset_time: datetime):
        super().__init__(f"Rate limit exceeded. Resets at {reset_time}", status_code=429)
        self.reset_time = reset_time


class VCSClient(ABC):
    """
    Base class for hosting provider clients.

    Subclasses supply authentication headers and the provider endpoints;
    the session, retry strategy and error mapping are shared.
    """

    provider_type: str = ""

    def __init__(self, token: str, base_url: str, timeout_seconds: int = 30):
        """
        Initialize VCS client.

        Args:
            token: Provider access token
            base_url: API base URL
            timeout_seconds: Request timeout
        """
        if not token:
            raise ValueError(f"{self.provider_type or 'VCS'} token is required")
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout_seconds = timeout_seconds
        self.session = self._create_session()

    @abstractmethod
    def _auth_headers(self) -> Dict[str, str]:
        """Authentication and content negotiation headers."""
        ...

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy and authentication."""
        session = requests.Session()

        # Configure retry strategy
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update(self._auth_headers())
        session.headers['User-Agent'] = 'PR-Inline-Reviewer/1.0'
        return session

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to the provider API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            VCSAPIError: For API errors
            RateLimitExceeded: When rate limit is exceeded
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout_seconds)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise VCSAPIError(f"Request failed: {str(e)}")

        if response.status_code == 429:
            reset = response.headers.get('X-RateLimit-Reset') or response.headers.get('RateLimit-Reset')
            reset_time = datetime.fromtimestamp(int(reset) if reset else int(time.time()) + 3600)
            raise RateLimitExceeded(reset_time)

        if not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {'message': response.text[:500]}
            if not isinstance(error_data, dict):
                error_data = {'message': str(error_data)}
            message = error_data.get('message') or error_data.get('error') or 'Unknown error'
            raise VCSAPIError(
                f"{self.provider_type} API error: {response.status_code} - {message}",
                status_code=response.status_code,
                response_data=error_data
            )

        return response

    def _get_paginated(self, endpoint: str, per_page: int = 100) -> List[Dict]:
        """Collect every page of a list endpoint."""
        items = []
        page = 1

        while True:
            response = self._make_request(
                'GET', endpoint, params={'page': page, 'per_page': per_page}
            )
            page_items = response.json()
            if not page_items:
                break

            items.extend(page_items)

            if len(page_items) < per_page:
                break

            page += 1

        return items

    @abstractmethod
    def get_diff(self, repo: str, number: int) -> str:
        """Unified diff text of the change."""
        ...

    @abstractmethod
    def get_head_sha(self, repo: str, number: int) -> str:
        """Latest commit SHA of the change."""
        ...

    @abstractmethod
    def post_comment(self, repo: str, number: int, body: str) -> None:
        """Post a general comment on the change."""
        ...

    @abstractmethod
    def post_inline_comment(
        self,
        repo: str,
        number: int,
        commit_sha: str,
        path: str,
        address: InlineAddress,
        body: str
    ) -> None:
        """Post an inline comment at a provider address."""
        ...

    @abstractmethod
    def get_inline_comments(self, repo: str, number: int) -> List[ExistingComment]:
        """Inline comments already on the change."""
        ...
