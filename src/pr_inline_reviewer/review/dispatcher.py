"""
Comment Dispatcher

Decides which resolved issues become inline comments, posts them through a
collaborator callback, and collects everything else for the fallback table.
"""

import logging
from typing import Callable, Iterable, List, Optional, Set, Tuple

from ..formatting.comment import InlineCommentFormatter
from ..models.diff import LineKind
from ..models.review import (
    DispatchResult,
    ExistingComment,
    IssueOutcome,
    IssueState,
    PostOperation,
)
from .addressing import AddressingStrategy


logger = logging.getLogger(__name__)


PostCallback = Callable[[PostOperation], None]

REASON_CONTEXT_LINE = "context line not commentable"
REASON_NO_ADDRESS = "no addressable line number"
REASON_ALREADY_COMMENTED = "already commented"


class CommentDispatcher:
    """
    Dispatcher for inline review comments.

    Posting failures are caught per issue and demoted to the fallback
    table; a failure never stops the remaining issues.
    """

    def __init__(
        self,
        addressing: AddressingStrategy,
        formatter: Optional[InlineCommentFormatter] = None
    ):
        """
        Initialize comment dispatcher.

        Args:
            addressing: Provider addressing strategy
            formatter: Formatter for comment bodies
        """
        self.addressing = addressing
        self.formatter = formatter or InlineCommentFormatter()

    def plan(self, outcome: IssueOutcome) -> Tuple[IssueOutcome, Optional[PostOperation]]:
        """
        Classify one outcome and build its post operation.

        Args:
            outcome: RESOLVED or UNMATCHED outcome from the resolver

        Returns:
            Tuple of (updated outcome, operation or None)
        """
        if outcome.state is not IssueState.RESOLVED or outcome.location is None:
            return outcome, None

        location = outcome.location
        if location.kind is LineKind.CONTEXT and not self.addressing.supports_context_line_comments():
            logger.info(
                f"Skipping context line ({self.addressing!r}): "
                f"{outcome.issue.file} line {location.display_line}"
            )
            return outcome.advance(IssueState.SKIPPED_BY_POLICY, reason=REASON_CONTEXT_LINE), None

        address = self.addressing.address(location)
        if address is None:
            logger.warning(f"No valid line number for inline comment: {outcome.issue.file}")
            return outcome.advance(IssueState.SKIPPED_BY_POLICY, reason=REASON_NO_ADDRESS), None

        eligible = outcome.advance(IssueState.ELIGIBLE)
        operation = PostOperation(
            path=outcome.issue.file,
            address=address,
            body=self.formatter.format_body(outcome.issue),
            outcome=eligible,
        )
        return eligible, operation

    def dispatch(
        self,
        outcomes: Iterable[IssueOutcome],
        existing_comments: Iterable[ExistingComment],
        post: PostCallback
    ) -> DispatchResult:
        """
        Post every eligible issue and partition the rest.

        Args:
            outcomes: Outcomes from the resolver, in report order
            existing_comments: Inline comments already on the change
            post: Collaborator that publishes one operation, raising on failure

        Returns:
            DispatchResult with posted, duplicate and fallback outcomes
        """
        result = DispatchResult()
        commented: Set[Tuple[str, int]] = {(c.path, c.line) for c in existing_comments}

        for outcome in outcomes:
            outcome, operation = self.plan(outcome)
            if operation is None:
                result.fallback.append(outcome)
                continue

            key = (operation.path, outcome.location.display_line)
            if key in commented:
                logger.info(f"Skipping existing comment on {key[0]} line {key[1]}")
                result.duplicates.append(outcome.advance(IssueState.DUPLICATE, reason=REASON_ALREADY_COMMENTED))
                continue

            try:
                post(operation)
            except Exception as e:
                logger.error(f"Failed to post inline comment on {operation.path}: {e}")
                result.fallback.append(outcome.advance(IssueState.POST_FAILED, reason=str(e)))
                continue

            result.posted.append(outcome.advance(IssueState.POSTED))

        logger.info(
            f"Dispatched {result.total} issues: {len(result.posted)} posted, "
            f"{len(result.duplicates)} duplicates, {len(result.fallback)} in fallback table"
        )
        return result

    def plan_all(self, outcomes: Iterable[IssueOutcome]) -> List[PostOperation]:
        """Build the operations that dispatch() would attempt, without posting."""
        operations = []
        for outcome in outcomes:
            _, operation = self.plan(outcome)
            if operation is not None:
                operations.append(operation)
        return operations
