"""
Summary Formatter

Builds the run's summary comment: selected sections of the model report
followed by a table of issues that could not be placed inline.
"""

from typing import Iterable, List, Sequence

from ..models.review import IssueOutcome


DEFAULT_SECTION_TITLES = ("Score", "Changes", "Summary", "评分", "修改点", "总结")

UNMATCHED_TABLE_TITLE = "### Issues not anchored to a diff line"
UNMATCHED_TABLE_HEADER = "| File | Code | Severity | Category | Problem | Suggestion |"

EMPTY_SUMMARY = "(No score, changes or summary section could be parsed from the review.)"


def extract_markdown_section(content: str, title: str) -> str:
    """
    Return the markdown section whose heading starts with ``title``.

    The section runs until the next heading of any level.
    """
    collected = []
    found = False

    for line in content.split('\n'):
        trimmed = line.strip()
        if trimmed.startswith('#'):
            heading = trimmed.lstrip('#').strip().rstrip(':：').strip()
            if found:
                break
            if heading.lower().startswith(title.lower()):
                found = True
                collected.append(line)
                continue

        if found:
            collected.append(line)

    return '\n'.join(collected).strip()


def build_summary_comment(report: str, section_titles: Sequence[str] = DEFAULT_SECTION_TITLES) -> str:
    """Join the report sections named in ``section_titles``."""
    parts = []
    for title in section_titles:
        section = extract_markdown_section(report, title)
        if section and section not in parts:
            parts.append(section)
    return '\n\n'.join(parts).strip()


def build_unmatched_table(outcomes: Iterable[IssueOutcome]) -> str:
    """
    Render issues that were not posted inline as a markdown table.

    Returns:
        Markdown section, or an empty string when there is nothing to list
    """
    rows: List[str] = []
    for outcome in outcomes:
        issue = outcome.issue
        rows.append(
            f"| {escape_cell(issue.file)}:{format_line(issue.reported_line)} "
            f"| {escape_cell(issue.code_snippet)} "
            f"| {escape_cell(issue.severity)} "
            f"| {escape_cell(issue.category)} "
            f"| {escape_cell(issue.problem)} "
            f"| {escape_cell(issue.suggestion)} |"
        )

    if not rows:
        return ""

    lines = [UNMATCHED_TABLE_TITLE, UNMATCHED_TABLE_HEADER, "|---|---|---|---|---|---|"]
    lines.extend(rows)
    return '\n'.join(lines)


def format_line(value: int) -> str:
    return str(value) if value > 0 else "-"


def escape_cell(value: str) -> str:
    """Make a value safe to place in a table cell."""
    trimmed = (value or "").strip()
    if not trimmed:
        return "-"
    return trimmed.replace('\r', '').replace('\n', ' ').replace('|', '\\|')
