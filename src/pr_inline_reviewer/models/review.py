"""
Review Data Models

코드 리뷰 이슈와 인라인 코멘트 관련 데이터 모델들
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from .diff import ResolvedLocation


class Side(Enum):
    """Which version of the file a reported line refers to."""
    OLD = "old"
    NEW = "new"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Side"]:
        """Parse a loose side hint from model output.

        "-" is the empty-cell placeholder and means no hint.
        """
        if not value:
            return None
        normalized = value.strip().strip('`').strip().lower()
        if normalized in {'old', 'left', 'removed', 'deleted'}:
            return cls.OLD
        if normalized in {'new', 'right', 'added', '+'}:
            return cls.NEW
        return None


@dataclass(frozen=True)
class ReviewIssue:
    """One issue row extracted from the model's report"""
    file: str
    old_line: int = 0
    new_line: int = 0
    side: Optional[Side] = None
    code_snippet: str = ""
    severity: str = ""
    category: str = ""
    problem: str = ""
    suggestion: str = ""

    def __post_init__(self):
        """데이터 검증"""
        if not self.file.strip():
            raise ValueError("Issue file cannot be empty")
        if self.old_line < 0 or self.new_line < 0:
            raise ValueError("Line numbers must be non-negative")

    @property
    def reported_line(self) -> int:
        """Line the model reported, preferring the new side."""
        if self.side is Side.OLD and self.old_line:
            return self.old_line
        return self.new_line or self.old_line


class IssueState(Enum):
    """Lifecycle of an issue through resolution and dispatch."""
    PARSED = "parsed"
    RESOLVED = "resolved"
    UNMATCHED = "unmatched"
    ELIGIBLE = "eligible"
    SKIPPED_BY_POLICY = "skipped_by_policy"
    DUPLICATE = "duplicate"
    POSTED = "posted"
    POST_FAILED = "post_failed"


_FALLBACK_STATES = {
    IssueState.PARSED,
    IssueState.UNMATCHED,
    IssueState.SKIPPED_BY_POLICY,
    IssueState.POST_FAILED,
}


@dataclass(frozen=True)
class IssueOutcome:
    """An issue tagged with its current lifecycle state"""
    issue: ReviewIssue
    state: IssueState = IssueState.PARSED
    location: Optional[ResolvedLocation] = None
    reason: str = ""

    def advance(
        self,
        state: IssueState,
        location: Optional[ResolvedLocation] = None,
        reason: str = "",
    ) -> "IssueOutcome":
        """Return a copy moved to a new state."""
        return replace(
            self,
            state=state,
            location=location if location is not None else self.location,
            reason=reason or self.reason,
        )

    @property
    def needs_fallback(self) -> bool:
        """Whether the issue belongs in the fallback table."""
        return self.state in _FALLBACK_STATES


@dataclass(frozen=True)
class ExistingComment:
    """Inline comment already present on the change"""
    path: str
    line: int


@dataclass(frozen=True)
class InlineAddress:
    """
    Provider addressing parameter for an inline comment.

    Position-addressed providers use ``position``; line-addressed providers
    set exactly one of ``old_line`` / ``new_line``.
    """
    position: int = 0
    old_line: int = 0
    new_line: int = 0

    def __post_init__(self):
        """데이터 검증"""
        if self.old_line and self.new_line:
            raise ValueError("Only one of old_line and new_line may be set")
        if not (self.position or self.old_line or self.new_line):
            raise ValueError("Address must carry a position or a line number")


@dataclass(frozen=True)
class PostOperation:
    """One inline comment to hand to the posting collaborator"""
    path: str
    address: InlineAddress
    body: str
    outcome: IssueOutcome


@dataclass
class DispatchResult:
    """Result of dispatching resolved issues"""
    posted: List[IssueOutcome] = field(default_factory=list)
    duplicates: List[IssueOutcome] = field(default_factory=list)
    fallback: List[IssueOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[IssueOutcome]:
        return [o for o in self.fallback if o.state is IssueState.POST_FAILED]

    @property
    def total(self) -> int:
        return len(self.posted) + len(self.duplicates) + len(self.fallback)


@dataclass
class ReviewRunResult:
    """전체 리뷰 실행 결과"""
    repository: str
    number: int
    provider: str
    status: str
    posted_count: int = 0
    duplicate_count: int = 0
    fallback_count: int = 0
    summary: str = ""
    error: Optional[str] = None

    def __post_init__(self):
        """데이터 검증"""
        valid_statuses = {'completed', 'failed'}
        if self.status not in valid_statuses:
            raise ValueError(f"Invalid status: {self.status}")


_REPO_PATTERN = re.compile(r'^[\w.-]+(/[\w.-]+)+$')


# Pydantic models for API validation
class ReviewRequestModel(BaseModel):
    """API 요청용 리뷰 요청 모델"""
    repo: str
    pr_number: int
    provider: Optional[str] = None

    @field_validator('repo')
    @classmethod
    def validate_repo(cls, v):
        v = v.strip()
        if not _REPO_PATTERN.match(v):
            raise ValueError('Repository must be in format "owner/repo"')
        return v

    @field_validator('pr_number')
    @classmethod
    def validate_pr_number(cls, v):
        if v <= 0:
            raise ValueError('PR number must be positive')
        return v

    @field_validator('provider')
    @classmethod
    def validate_provider(cls, v):
        if v is None or v == '':
            return None
        v = v.strip().lower()
        if v not in {'github', 'gitlab'}:
            raise ValueError(f'Unsupported provider: {v}')
        return v
