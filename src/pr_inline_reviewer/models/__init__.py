"""
Data Models

PR Inline Reviewer 시스템의 핵심 데이터 모델들
"""

from .diff import LineKind, DiffLine, FilePositionIndex, ResolvedLocation, PositionIndex
from .review import (
    Side,
    ReviewIssue,
    IssueState,
    IssueOutcome,
    ExistingComment,
    InlineAddress,
    PostOperation,
    DispatchResult,
    ReviewRunResult,
    ReviewRequestModel,
)

__all__ = [
    "LineKind",
    "DiffLine",
    "FilePositionIndex",
    "ResolvedLocation",
    "PositionIndex",
    "Side",
    "ReviewIssue",
    "IssueState",
    "IssueOutcome",
    "ExistingComment",
    "InlineAddress",
    "PostOperation",
    "DispatchResult",
    "ReviewRunResult",
    "ReviewRequestModel",
]
