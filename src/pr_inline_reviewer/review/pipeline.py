"""
Inline Review Pipeline

Runs the engine for one review: index the diff, extract issues from the
report, resolve them and dispatch inline comments.
"""

import logging
from typing import Iterable, Optional

from ..formatting.comment import InlineCommentFormatter
from ..models.review import DispatchResult, ExistingComment
from .addressing import AddressingStrategy
from .dispatcher import CommentDispatcher, PostCallback
from .extractor import IssueExtractor
from .indexer import DiffPositionIndexer
from .resolver import LineResolver


logger = logging.getLogger(__name__)


def run_inline_review(
    diff_text: str,
    report: str,
    addressing: AddressingStrategy,
    existing_comments: Iterable[ExistingComment],
    post: PostCallback,
    formatter: Optional[InlineCommentFormatter] = None
) -> DispatchResult:
    """
    Place the issues of a review report as inline comments.

    Args:
        diff_text: Full unified diff of the change
        report: Model review report
        addressing: Provider addressing strategy
        existing_comments: Inline comments fetched at the start of this run
        post: Collaborator that publishes one PostOperation
        formatter: Optional comment body formatter

    Returns:
        DispatchResult; its fallback list feeds the summary table
    """
    index = DiffPositionIndexer().build(diff_text)
    issues = IssueExtractor().extract(report)
    if not issues:
        logger.info("No issue rows found in review report")
        return DispatchResult()

    outcomes = LineResolver().resolve_issues(issues, index)
    dispatcher = CommentDispatcher(addressing, formatter)
    return dispatcher.dispatch(outcomes, existing_comments, post)
