"""
Review Formatter

This module provides inline comment bodies and the run summary with its
fallback table.
"""

from .comment import InlineCommentFormatter
from .summary import build_summary_comment, build_unmatched_table, extract_markdown_section

__all__ = [
    'InlineCommentFormatter',
    'build_summary_comment',
    'build_unmatched_table',
    'extract_markdown_section',
]
