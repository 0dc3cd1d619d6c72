"""
Issue Extractor

Parses the model's review report into structured issues.
Only pipe-delimited table rows are considered; everything else in the
report is prose and is ignored.
"""

import re
import logging
from typing import List, Optional, Tuple

from ..models.review import ReviewIssue, Side


logger = logging.getLogger(__name__)


FULL_WIDTH_PIPE = "｜"
MIN_CELLS = 5

HEADER_KEYWORDS = {'file', 'filename', 'file name', 'path', 'location', '文件名', '文件'}


class IssueExtractor:
    """
    Extractor for review issue tables.

    The number of non-empty cells in a row selects its schema:

    - 9+ cells: file, old, new, side, snippet, severity, category, problem, suggestion
    - 8 cells: file, old, new, snippet, severity, category, problem, suggestion
    - 6-7 cells: file, old, new, severity, category, problem, [suggestion]
    - 5 cells: ``[+|-]path:line``, severity, category, problem, suggestion
    """

    def __init__(self):
        """Initialize issue extractor."""
        self.separator_pattern = re.compile(r'-{3,}')
        self.file_line_pattern = re.compile(r'^(.+?):\s*`?(\d+)`?$')

    def extract(self, report: str) -> List[ReviewIssue]:
        """
        Extract issues from a review report, preserving report order.

        Args:
            report: Full text returned by the model

        Returns:
            List of ReviewIssue objects
        """
        issues = []
        if not report:
            return issues

        for line in report.split('\n'):
            issue = self.parse_row(line)
            if issue is not None:
                issues.append(issue)

        logger.info(f"Extracted {len(issues)} issues from review report")
        return issues

    def parse_row(self, line: str) -> Optional[ReviewIssue]:
        """
        Parse one report line into an issue.

        Args:
            line: A single line of the report

        Returns:
            ReviewIssue, or None when the line is not a usable issue row
        """
        normalized = line.replace(FULL_WIDTH_PIPE, '|')
        if '|' not in normalized:
            return None

        cells = split_table_row(normalized)
        if len(cells) < MIN_CELLS or self._is_header_row(cells):
            return None

        if len(cells) >= 6:
            return self._parse_columns(cells)
        return self._parse_file_line_row(cells)

    def _is_header_row(self, cells: List[str]) -> bool:
        first = cells[0].strip('` :').lower()
        if first in HEADER_KEYWORDS or '文件名' in first:
            return True
        return bool(self.separator_pattern.search(cells[0]))

    def _parse_columns(self, cells: List[str]) -> Optional[ReviewIssue]:
        file_path = strip_code(cells[0])
        old_line = parse_line_number(cells[1])
        new_line = parse_line_number(cells[2])
        if not file_path or (old_line == 0 and new_line == 0):
            return None

        side = None
        snippet = ""
        if len(cells) >= 9:
            side = Side.parse(cells[3])
            snippet = strip_code(cells[4])
            rest = cells[5:]
        elif len(cells) == 8:
            snippet = strip_code(cells[3])
            rest = cells[4:]
        else:
            rest = cells[3:]

        return ReviewIssue(
            file=file_path,
            old_line=old_line,
            new_line=new_line,
            side=side,
            code_snippet=snippet,
            severity=rest[0],
            category=rest[1],
            problem=rest[2],
            suggestion=rest[3] if len(rest) > 3 else "",
        )

    def _parse_file_line_row(self, cells: List[str]) -> Optional[ReviewIssue]:
        parsed = self.parse_file_line(cells[0])
        if parsed is None:
            return None

        file_path, line_number, side = parsed
        if side is Side.OLD:
            old_line, new_line = line_number, 0
        else:
            old_line, new_line = 0, line_number

        return ReviewIssue(
            file=file_path,
            old_line=old_line,
            new_line=new_line,
            side=side,
            severity=cells[1],
            category=cells[2],
            problem=cells[3],
            suggestion=cells[4],
        )

    def parse_file_line(self, cell: str) -> Optional[Tuple[str, int, Optional[Side]]]:
        """
        Parse a ``[+|-]path:line`` cell.

        Returns:
            Tuple of (path, line, side) or None if the cell does not match
        """
        text = cell.strip()
        side = None
        if text.startswith('+'):
            side = Side.NEW
            text = text[1:].strip()
        elif text.startswith('-'):
            side = Side.OLD
            text = text[1:].strip()

        match = self.file_line_pattern.match(strip_code(text))
        if not match:
            return None

        file_path = strip_code(match.group(1))
        line_number = int(match.group(2))
        if not file_path or line_number <= 0:
            return None
        return file_path, line_number, side


def split_table_row(line: str) -> List[str]:
    """Split a table row on pipes, dropping empty cells."""
    return [cell.strip() for cell in line.split('|') if cell.strip()]


def strip_code(value: str) -> str:
    """Trim whitespace and surrounding backticks."""
    return value.strip().strip('`').strip()


def parse_line_number(value: str) -> int:
    """Parse a line number cell; placeholders and garbage become 0."""
    text = strip_code(value)
    if not text or text == '-':
        return 0
    try:
        number = int(text)
    except ValueError:
        return 0
    return number if number > 0 else 0


def extract_issues(report: str) -> List[ReviewIssue]:
    """Extract issues with a fresh extractor."""
    return IssueExtractor().extract(report)
