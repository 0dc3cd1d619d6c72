"""
Diff Position Data Models

Per-file position index built from unified diff text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class LineKind(Enum):
    """Classification of a line inside a diff hunk."""
    ADDED = "+"
    REMOVED = "-"
    CONTEXT = " "

    @classmethod
    def from_marker(cls, marker: str) -> Optional["LineKind"]:
        """Map a leading diff marker to a kind, or None for unknown markers."""
        for kind in cls:
            if kind.value == marker:
                return kind
        return None


@dataclass(frozen=True)
class DiffLine:
    """One physical line inside a diff hunk."""
    position: int
    content: str
    kind: LineKind

    def __post_init__(self):
        """데이터 검증"""
        if self.position <= 0:
            raise ValueError("Diff position must be positive")


@dataclass
class FilePositionIndex:
    """
    Bidirectional line map for one file of a diff.

    Context lines are stored in both maps under the same position;
    added lines only in new_lines and removed lines only in old_lines.
    """
    path: str
    old_lines: Dict[int, DiffLine] = field(default_factory=dict)
    new_lines: Dict[int, DiffLine] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.old_lines and not self.new_lines

    def __len__(self) -> int:
        positions = {line.position for line in self.old_lines.values()}
        positions.update(line.position for line in self.new_lines.values())
        return len(positions)

    def old_line_for(self, position: int) -> int:
        """Old-file line number holding the given position, 0 if none."""
        return _reverse_lookup(self.old_lines, position)

    def new_line_for(self, position: int) -> int:
        """New-file line number holding the given position, 0 if none."""
        return _reverse_lookup(self.new_lines, position)


def _reverse_lookup(lines: Dict[int, DiffLine], position: int) -> int:
    for number, line in lines.items():
        if line.position == position:
            return number
    return 0


@dataclass(frozen=True)
class ResolvedLocation:
    """A diff line an issue was matched to, with its concrete line numbers."""
    line: DiffLine
    old_line: int = 0
    new_line: int = 0

    @classmethod
    def from_line(cls, line: DiffLine, file_index: FilePositionIndex) -> "ResolvedLocation":
        """Build a location by reverse lookup of the line's position in both maps."""
        return cls(
            line=line,
            old_line=file_index.old_line_for(line.position),
            new_line=file_index.new_line_for(line.position),
        )

    @property
    def kind(self) -> LineKind:
        return self.line.kind

    @property
    def position(self) -> int:
        return self.line.position

    @property
    def display_line(self) -> int:
        """Line number shown to readers: new side first."""
        return self.new_line or self.old_line


PositionIndex = Dict[str, FilePositionIndex]
