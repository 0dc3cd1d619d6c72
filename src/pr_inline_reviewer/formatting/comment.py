"""
Inline Comment Formatter

Builds the markdown body of an inline review comment from an issue.
"""

import logging
from typing import List, Optional, Tuple

from ..models.review import ReviewIssue


logger = logging.getLogger(__name__)


MAX_COMMENT_LENGTH = 65536  # GitHub's comment limit

# Phrasings that usually mean "change A to B"
CHANGE_KEYWORDS = (
    "change", "replace", "rename", "should be", "instead of", "use ",
    "改为", "修改为", "替换为", "应该是", "建议使用",
)


class InlineCommentFormatter:
    """
    Formats issues as inline comment bodies.

    A suggestion that quotes both the current and the proposed code is
    followed by a two-line ``diff`` block.
    """

    def __init__(self, max_comment_length: int = MAX_COMMENT_LENGTH):
        """
        Initialize inline comment formatter.

        Args:
            max_comment_length: Maximum body length accepted by the provider
        """
        self.max_comment_length = max_comment_length

    def format_body(self, issue: ReviewIssue) -> str:
        """
        Format the comment body for an issue.

        Args:
            issue: ReviewIssue to describe

        Returns:
            Markdown comment body
        """
        parts = [
            f"**Severity**: {issue.severity or '-'}",
            f"**Category**: {issue.category or '-'}",
            f"**Problem**: {issue.problem or '-'}",
        ]
        if issue.suggestion:
            parts.append(f"**Suggestion**: {self.format_suggestion(issue.suggestion)}")

        body = "\n\n".join(parts) + "\n"
        if len(body) > self.max_comment_length:
            logger.warning(f"Truncating inline comment for {issue.file} ({len(body)} chars)")
            body = body[:self.max_comment_length - 20] + "\n\n...(truncated)"
        return body

    def format_suggestion(self, suggestion: str) -> str:
        """Append a before/after diff block when the suggestion quotes both."""
        if "```" in suggestion or not contains_code_suggestion(suggestion):
            return suggestion

        change = extract_code_change(suggestion)
        if change is None:
            return suggestion

        old_code, new_code = change
        return (
            f"{suggestion}\n\n"
            "```diff\n"
            f"- {old_code}\n"
            f"+ {new_code}\n"
            "```"
        )


def contains_code_suggestion(text: str) -> bool:
    """Check whether the suggestion reads like a code change."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in CHANGE_KEYWORDS)


def extract_code_change(text: str) -> Optional[Tuple[str, str]]:
    """
    Pull the first two distinct back-quoted fragments out of a suggestion.

    Returns:
        Tuple of (old_code, new_code) or None
    """
    fragments: List[str] = []
    for i, part in enumerate(text.split('`')):
        if i % 2 == 0:
            continue
        code = part.strip()
        if code:
            fragments.append(code)
        if len(fragments) == 2:
            break

    if len(fragments) < 2 or fragments[0] == fragments[1]:
        return None
    return fragments[0], fragments[1]
