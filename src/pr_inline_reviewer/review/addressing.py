"""
Provider Addressing

Translates a resolved diff location into the inline-comment addressing
convention of a hosting provider.
"""

from typing import Optional, Protocol

from ..models.diff import LineKind, ResolvedLocation
from ..models.review import InlineAddress


PROVIDER_GITHUB = "github"
PROVIDER_GITLAB = "gitlab"


class AddressingStrategy(Protocol):
    """Capabilities of a provider for inline comments."""

    def supports_context_line_comments(self) -> bool:
        ...

    def address(self, location: ResolvedLocation) -> Optional[InlineAddress]:
        ...


class PositionAddressing:
    """
    Diff-position addressing (GitHub).

    Every line kind can carry a comment; context lines are only refused when
    the operator asked for comments on changed lines only.
    """

    def __init__(self, comment_only_changes: bool = False):
        self.comment_only_changes = comment_only_changes

    def supports_context_line_comments(self) -> bool:
        return not self.comment_only_changes

    def address(self, location: ResolvedLocation) -> Optional[InlineAddress]:
        return InlineAddress(position=location.position)

    def __repr__(self) -> str:
        return f"PositionAddressing(comment_only_changes={self.comment_only_changes})"


class LineAddressing:
    """
    Line-number addressing (GitLab).

    Context lines cannot carry comments. Added lines are addressed by new
    line number and removed lines by old line number, never both.
    """

    def supports_context_line_comments(self) -> bool:
        return False

    def address(self, location: ResolvedLocation) -> Optional[InlineAddress]:
        if location.kind is LineKind.ADDED and location.new_line:
            return InlineAddress(new_line=location.new_line)
        if location.kind is LineKind.REMOVED and location.old_line:
            return InlineAddress(old_line=location.old_line)
        return None

    def __repr__(self) -> str:
        return "LineAddressing()"


def addressing_for(provider_type: str, comment_only_changes: bool = False) -> AddressingStrategy:
    """
    Pick the addressing strategy for a provider.

    Args:
        provider_type: "github" or "gitlab"
        comment_only_changes: Refuse context lines on position-addressed providers

    Returns:
        AddressingStrategy instance
    """
    if provider_type == PROVIDER_GITHUB:
        return PositionAddressing(comment_only_changes=comment_only_changes)
    if provider_type == PROVIDER_GITLAB:
        return LineAddressing()
    raise ValueError(f"Unsupported provider: {provider_type}")
