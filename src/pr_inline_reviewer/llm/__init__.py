"""
LLM Review Client

This module provides the chat completion client and the default review
prompts.
"""

from .client import ReviewModelClient, ModelAPIError
from .prompts import DEFAULT_SYSTEM_PROMPT, DEFAULT_USER_TEMPLATE, build_user_prompt, truncate_diff

__all__ = [
    'ReviewModelClient',
    'ModelAPIError',
    'DEFAULT_SYSTEM_PROMPT',
    'DEFAULT_USER_TEMPLATE',
    'build_user_prompt',
    'truncate_diff',
]
