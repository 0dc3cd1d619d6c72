"""
Diff Position Indexer

Parses unified diff text into a per-file position index.
Positions count hunk body lines continuously across all hunks of a file,
which is how position-addressed providers locate inline comments.
"""

import re
import logging
from typing import Optional, Tuple

from ..models.diff import DiffLine, FilePositionIndex, LineKind, PositionIndex


logger = logging.getLogger(__name__)


NO_NEWLINE_MARKER = "\\ No newline at end of file"
NULL_DEVICE = "/dev/null"


class DiffPositionIndexer:
    """
    Builder for diff position indexes.

    A single pass over the diff text; malformed or tool-specific lines are
    skipped rather than rejected, so indexing never fails.
    """

    def __init__(self):
        """Initialize diff position indexer."""
        self.hunk_header_pattern = re.compile(r'^@@\s*-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s*@@(.*)$')

    def build(self, diff_text: str) -> PositionIndex:
        """
        Build the position index for a full change set.

        Args:
            diff_text: Unified diff text covering one or more files

        Returns:
            Mapping of file path to FilePositionIndex
        """
        index: PositionIndex = {}
        if not diff_text:
            return index

        current: Optional[FilePositionIndex] = None
        old_line = 0
        new_line = 0
        position = 0
        in_hunk = False
        old_remaining = new_remaining = 0

        lines = [line.rstrip('\r') for line in diff_text.split('\n')]
        for i, line in enumerate(lines):
            next_line = lines[i + 1] if i + 1 < len(lines) else ''

            if line.startswith('diff --git '):
                current = None
                old_line = new_line = position = 0
                in_hunk = False
                continue

            # Once the hunk body is used up, "--- a/x" directly followed by "+++ "
            # opens the next file even without a "diff --git" line
            body_done = old_remaining <= 0 and new_remaining <= 0
            if (not in_hunk or body_done) and line.startswith('--- ') and next_line.startswith('+++ '):
                in_hunk = False
                continue

            # Inside a hunk "+++ x" is an added line whose text starts with "++ "
            if line.startswith('+++ ') and not in_hunk:
                old_line = new_line = position = 0
                in_hunk = False
                path = self._parse_new_path(line)
                if path is None:
                    current = None
                    continue
                current = index.setdefault(path, FilePositionIndex(path=path))
                continue

            if current is None:
                continue

            if line.startswith('@@'):
                old_line, old_remaining, new_line, new_remaining = self._parse_hunk_header(line)
                in_hunk = bool(old_line or new_line)
                if not in_hunk:
                    logger.debug(f"Ignoring malformed hunk header in {current.path}: {line!r}")
                continue

            if not in_hunk:
                continue

            if line == NO_NEWLINE_MARKER:
                continue

            kind = LineKind.from_marker(line[:1])
            if kind is None:
                continue

            position += 1
            diff_line = DiffLine(position=position, content=line[1:], kind=kind)

            if kind is LineKind.ADDED:
                current.new_lines[new_line] = diff_line
                new_line += 1
                new_remaining -= 1
            elif kind is LineKind.REMOVED:
                current.old_lines[old_line] = diff_line
                old_line += 1
                old_remaining -= 1
            else:
                current.old_lines[old_line] = diff_line
                current.new_lines[new_line] = diff_line
                old_line += 1
                new_line += 1
                old_remaining -= 1
                new_remaining -= 1

        logger.debug(f"Indexed {len(index)} files from diff")
        return index

    def _parse_new_path(self, header: str) -> Optional[str]:
        """
        Extract the post-image path from a ``+++`` header.

        Returns None for the deletion sentinel and for headers that do not
        name a ``b/`` path.
        """
        target = header[4:].split('\t', 1)[0].strip()
        if target == NULL_DEVICE or not target.startswith('b/'):
            return None
        path = target[2:].strip()
        return path or None

    def _parse_hunk_header(self, header: str) -> Tuple[int, int, int, int]:
        """
        Parse ``@@ -old,len +new,len @@`` into (old_start, old_len, new_start, new_len).

        An omitted length is 1. Returns zeros when the header is garbled.
        """
        match = self.hunk_header_pattern.match(header)
        if not match:
            return 0, 0, 0, 0
        old_len = int(match.group(2)) if match.group(2) is not None else 1
        new_len = int(match.group(4)) if match.group(4) is not None else 1
        return int(match.group(1)), old_len, int(match.group(3)), new_len


def build_position_index(diff_text: str) -> PositionIndex:
    """Build a position index with a fresh indexer."""
    return DiffPositionIndexer().build(diff_text)
