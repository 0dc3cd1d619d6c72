"""
Main Inline Reviewer API

Main interface that orchestrates one review run, from fetching the diff
to posting inline comments and the summary comment.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .config import AppConfig
from .formatting.comment import InlineCommentFormatter
from .formatting.summary import EMPTY_SUMMARY, build_summary_comment, build_unmatched_table
from .llm.client import ModelAPIError, ReviewModelClient
from .llm.prompts import truncate_diff
from .models.review import ExistingComment, PostOperation, ReviewRunResult
from .review.addressing import addressing_for
from .review.pipeline import run_inline_review
from .vcs import VCSAPIError, VCSClient, create_client


logger = logging.getLogger(__name__)


COMMENT_HEADER = "🤖 **AI Code Review**"

ClientFactory = Callable[..., VCSClient]


class InlineReviewerAPI:
    """
    Main Inline Reviewer API interface.

    Orchestrates a review run:
    1. Fetch the change's diff
    2. Ask the review model for a report
    3. Place report issues as inline comments
    4. Post a summary with the issues that could not be placed
    """

    def __init__(
        self,
        config: AppConfig,
        client_factory: ClientFactory = create_client,
        model_client: Optional[ReviewModelClient] = None
    ):
        """
        Initialize Inline Reviewer API.

        Args:
            config: Application configuration
            client_factory: Builds the VCS client for a provider
            model_client: Review model client (built from config if omitted)
        """
        self.config = config
        self.client_factory = client_factory
        self.model_client = model_client or ReviewModelClient.from_config(config.model)
        self.formatter = InlineCommentFormatter()

    def process_review(
        self,
        repo: str,
        number: int,
        provider_type: Optional[str] = None,
        token: Optional[str] = None
    ) -> ReviewRunResult:
        """
        Run a complete review of one change.

        Args:
            repo: Repository (owner/repo or group/project)
            number: Pull/merge request number
            provider_type: "github" or "gitlab"; configured provider if omitted
            token: Token overriding the configured one

        Returns:
            ReviewRunResult; failures are reported in the result, not raised
        """
        provider_type = provider_type or self.config.vcs.provider
        tag = f"[{repo}#{number}]"
        start_time = datetime.now()

        try:
            client = self.client_factory(provider_type, self.config, token)
            logger.info(f"{tag} Using VCS provider: {client.provider_type}")

            logger.info(f"{tag} Fetching diff...")
            diff_text = client.get_diff(repo, number)

            logger.info(f"{tag} Sending to AI for review...")
            report = self.model_client.review_code(
                truncate_diff(diff_text, self.config.review.max_diff_chars)
            )

            if not self.config.review.inline_issue_comment:
                client.post_comment(repo, number, f"{COMMENT_HEADER}\n\n{report}")
                logger.info(f"{tag} Review completed successfully!")
                return ReviewRunResult(
                    repository=repo, number=number, provider=provider_type,
                    status='completed', summary=report,
                )

            result = self._post_inline_review(client, repo, number, diff_text, report)
        except (VCSAPIError, ModelAPIError, ValueError) as e:
            logger.error(f"{tag} Review failed: {e}")
            return ReviewRunResult(
                repository=repo, number=number, provider=provider_type,
                status='failed', error=str(e),
            )
        except Exception as e:
            logger.error(f"{tag} Unexpected error during review: {e}")
            return ReviewRunResult(
                repository=repo, number=number, provider=provider_type,
                status='failed', error=str(e),
            )

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"{tag} Review completed successfully! ({processing_time:.2f}s)")
        return result

    def _post_inline_review(
        self,
        client: VCSClient,
        repo: str,
        number: int,
        diff_text: str,
        report: str
    ) -> ReviewRunResult:
        tag = f"[{repo}#{number}]"
        head_sha = client.get_head_sha(repo, number)
        existing = self._fetch_existing_comments(client, repo, number)

        def post(operation: PostOperation) -> None:
            client.post_inline_comment(
                repo, number, head_sha, operation.path, operation.address, operation.body
            )

        logger.info(f"{tag} Posting inline comments...")
        dispatch = run_inline_review(
            diff_text,
            report,
            addressing_for(client.provider_type, self.config.review.comment_only_changes),
            existing,
            post,
            self.formatter,
        )

        summary = build_summary_comment(report) or EMPTY_SUMMARY
        unmatched_table = build_unmatched_table(dispatch.fallback)
        if unmatched_table:
            summary = f"{summary}\n\n{unmatched_table}".strip()

        client.post_comment(repo, number, f"{COMMENT_HEADER}\n\n{summary}")

        return ReviewRunResult(
            repository=repo,
            number=number,
            provider=client.provider_type,
            status='completed',
            posted_count=len(dispatch.posted),
            duplicate_count=len(dispatch.duplicates),
            fallback_count=len(dispatch.fallback),
            summary=summary,
        )

    def _fetch_existing_comments(self, client: VCSClient, repo: str, number: int) -> List[ExistingComment]:
        """Existing inline comments; an unreadable list disables deduplication."""
        try:
            return client.get_inline_comments(repo, number)
        except VCSAPIError as e:
            logger.warning(f"[{repo}#{number}] Could not fetch existing comments, deduplication disabled: {e}")
            return []
