"""
Line Resolver

Resolves extracted issues to a single diff line.

Quoted code is trusted over reported line numbers: when an issue carries a
snippet, only the snippet is used, and a snippet matching more than one
line is left unresolved instead of guessing.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..models.diff import DiffLine, FilePositionIndex, PositionIndex, ResolvedLocation
from ..models.review import IssueOutcome, IssueState, ReviewIssue, Side


logger = logging.getLogger(__name__)


ELLIPSIS_MARKERS = ("...", "…")

REASON_FILE_NOT_IN_DIFF = "file not in diff"
REASON_INVALID_SNIPPET = "invalid snippet"
REASON_AMBIGUOUS_SNIPPET = "ambiguous snippet"
REASON_SNIPPET_NOT_FOUND = "snippet not found"
REASON_LINE_NOT_IN_DIFF = "line not in diff"


def normalize_code(text: str) -> str:
    """Drop surrounding backticks and collapse whitespace."""
    trimmed = text.strip().strip('`').strip()
    return ' '.join(trimmed.split())


def normalize_snippet(snippet: str) -> str:
    """Normalize a model-quoted snippet, removing an echoed diff marker."""
    trimmed = snippet.strip().strip('`').strip()
    if trimmed[:1] in ('+', '-'):
        trimmed = trimmed[1:]
    return normalize_code(trimmed)


def is_invalid_snippet(normalized: str) -> bool:
    """Empty or truncated snippets cannot be matched."""
    if not normalized:
        return True
    return any(marker in normalized for marker in ELLIPSIS_MARKERS)


class LineResolver:
    """
    Resolver for issue locations.

    Tiers, first success wins:

    1. Snippet match, unique within the preferred side, then the other side.
       The preferred side is the side hint, else old when only an old line
       number was reported, else new.
    2. Line-number match, only when the issue has no snippet
    """

    def resolve(self, issue: ReviewIssue, file_index: FilePositionIndex) -> Optional[ResolvedLocation]:
        """
        Find the diff line an issue refers to.

        Args:
            issue: Extracted issue
            file_index: Position index for the issue's file

        Returns:
            ResolvedLocation, or None when unresolved
        """
        location, _ = self.resolve_with_reason(issue, file_index)
        return location

    def resolve_with_reason(
        self,
        issue: ReviewIssue,
        file_index: FilePositionIndex
    ) -> Tuple[Optional[ResolvedLocation], str]:
        """Resolve an issue, also returning why resolution failed."""
        if issue.code_snippet:
            line, reason = self._match_snippet(issue, file_index)
        else:
            line = self._match_line_number(issue, file_index)
            reason = "" if line else REASON_LINE_NOT_IN_DIFF

        if line is None:
            return None, reason
        return ResolvedLocation.from_line(line, file_index), ""

    def resolve_issues(self, issues: List[ReviewIssue], index: PositionIndex) -> List[IssueOutcome]:
        """
        Resolve every issue against the index of its file.

        Args:
            issues: Issues in report order
            index: Position index of the whole change set

        Returns:
            One RESOLVED or UNMATCHED outcome per issue, in the same order
        """
        outcomes = []
        for issue in issues:
            outcome = IssueOutcome(issue=issue)
            file_index = index.get(issue.file)
            if file_index is None:
                logger.warning(f"File not in diff for inline comment: {issue.file}")
                outcomes.append(outcome.advance(IssueState.UNMATCHED, reason=REASON_FILE_NOT_IN_DIFF))
                continue

            location, reason = self.resolve_with_reason(issue, file_index)
            if location is None:
                logger.warning(
                    f"Could not place issue in {issue.file} "
                    f"(old:{issue.old_line} new:{issue.new_line}): {reason}"
                )
                outcomes.append(outcome.advance(IssueState.UNMATCHED, reason=reason))
                continue

            outcomes.append(outcome.advance(IssueState.RESOLVED, location=location))

        resolved = sum(1 for o in outcomes if o.state is IssueState.RESOLVED)
        logger.info(f"Resolved {resolved}/{len(outcomes)} issues to diff lines")
        return outcomes

    def _match_snippet(
        self,
        issue: ReviewIssue,
        file_index: FilePositionIndex
    ) -> Tuple[Optional[DiffLine], str]:
        snippet = normalize_snippet(issue.code_snippet)
        if is_invalid_snippet(snippet):
            return None, REASON_INVALID_SNIPPET

        if _prefers_old_side(issue):
            sides = (file_index.old_lines, file_index.new_lines)
        else:
            sides = (file_index.new_lines, file_index.old_lines)

        ambiguous = False
        for lines in sides:
            candidates = _find_candidates(lines, snippet)
            if len(candidates) == 1:
                return candidates[0], ""
            if len(candidates) > 1:
                ambiguous = True
                break

        if ambiguous:
            return None, REASON_AMBIGUOUS_SNIPPET
        return None, REASON_SNIPPET_NOT_FOUND

    def _match_line_number(self, issue: ReviewIssue, file_index: FilePositionIndex) -> Optional[DiffLine]:
        attempts = []
        if issue.side is Side.NEW and issue.new_line:
            attempts.append((file_index.new_lines, issue.new_line))
        if issue.side is Side.OLD and issue.old_line:
            attempts.append((file_index.old_lines, issue.old_line))
        if issue.new_line:
            attempts.append((file_index.new_lines, issue.new_line))
        if issue.old_line:
            attempts.append((file_index.old_lines, issue.old_line))

        for lines, number in attempts:
            line = lines.get(number)
            if line is not None:
                return line
        return None


def _prefers_old_side(issue: ReviewIssue) -> bool:
    """Old side first when hinted, or when only an old line number was reported."""
    if issue.side is not None:
        return issue.side is Side.OLD
    return bool(issue.old_line) and not issue.new_line


def _find_candidates(lines: Dict[int, DiffLine], snippet: str) -> List[DiffLine]:
    """Lines whose normalized content contains the snippet, one per position."""
    matches: Dict[int, DiffLine] = {}
    for number in sorted(lines):
        line = lines[number]
        if snippet in normalize_code(line.content):
            matches.setdefault(line.position, line)
    return list(matches.values())
