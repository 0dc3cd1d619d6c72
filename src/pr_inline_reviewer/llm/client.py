"""
Review Model Client

Sends a diff to an OpenAI-compatible chat completion endpoint and returns
the model's review report.
"""

import logging
from typing import Dict, List, Optional

import requests

from .prompts import DEFAULT_SYSTEM_PROMPT, DEFAULT_USER_TEMPLATE, build_user_prompt


logger = logging.getLogger(__name__)


class ModelAPIError(Exception):
    """Review model API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ReviewModelClient:
    """
    Chat completion client for code review.

    Uses the OpenAI message format, which most hosted and self-hosted
    model gateways accept.
    """

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str],
        model: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        user_template: str = DEFAULT_USER_TEMPLATE,
        timeout_seconds: int = 60,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize review model client.

        Args:
            api_url: Chat completion endpoint URL
            api_key: Bearer token for the endpoint
            model: Model name
            system_prompt: System message
            user_template: User message template with a {diff} placeholder
            timeout_seconds: Request timeout
            session: Optional requests session
        """
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.system_prompt = system_prompt
        self.user_template = user_template
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, model_config) -> "ReviewModelClient":
        """Create a client from a ModelConfig."""
        return cls(
            api_url=model_config.api_url,
            api_key=model_config.api_key,
            model=model_config.model,
            system_prompt=model_config.system_prompt,
            user_template=model_config.user_prompt_template,
            timeout_seconds=model_config.timeout_seconds,
        )

    def build_messages(self, diff_text: str) -> List[Dict[str, str]]:
        """Build the chat messages for a diff."""
        return [
            {'role': 'system', 'content': self.system_prompt},
            {'role': 'user', 'content': build_user_prompt(self.user_template, diff_text)},
        ]

    def review_code(self, diff_text: str) -> str:
        """
        Ask the model to review a diff.

        Args:
            diff_text: Unified diff text (already truncated if needed)

        Returns:
            The model's review report

        Raises:
            ModelAPIError: For transport errors and unusable responses
        """
        payload = {
            'model': self.model,
            'messages': self.build_messages(diff_text),
            'stream': False,
        }
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'

        try:
            response = self.session.post(
                self.api_url, json=payload, headers=headers, timeout=self.timeout_seconds
            )
        except requests.RequestException as e:
            logger.error(f"Review model request failed: {e}")
            raise ModelAPIError(f"AI service call failed: {str(e)}")

        if not response.ok:
            logger.error(f"Review model response body: {response.text[:500]}")
            raise ModelAPIError(
                f"AI service error: {response.status_code}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse AI response: {response.text[:500]}")
            raise ModelAPIError(f"Failed to parse AI response: {str(e)}")

        choices = data.get('choices') if isinstance(data, dict) else None
        if not choices:
            raise ModelAPIError("AI returned empty response")

        content = (choices[0].get('message') or {}).get('content') or ''
        if not content.strip():
            raise ModelAPIError("AI returned empty review content")

        logger.info(f"Received review from {self.model} ({len(content)} chars)")
        return content
