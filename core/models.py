"""
Value objects shared by the Issue Radar collectors and scorers.

Everything here is frozen: an evaluation builds these once and hands them
to the consumer as a snapshot. Re-fetching an issue produces new objects,
nothing is patched in place.

Payload parsing (`from_api`) is forgiving: missing fields
become empty strings, zero counts, or None timestamps.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from utils.timestamps import parse_timestamp, to_iso


STALE_CLAIM_HOURS = 72
OVERLOADED_OPEN_PRS = 8

_SHORT_REF_RE = re.compile(r"^([\w.-]+)/([\w.-]+)#(\d+)$")
_PATH_RE = re.compile(r"^/?([\w.-]+)/([\w.-]+)/issues/(\d+)/?$")


# =============================================================================
# ISSUE DATA
# =============================================================================

@dataclass(frozen=True)
class IssueRef:
    """Identity of an issue: owner/repo#number"""
    owner: str
    repo: str
    number: int

    @classmethod
    def parse(cls, value: str) -> IssueRef:
        """
        Parse an issue reference.

        Accepts "owner/repo#123", "https://github.com/owner/repo/issues/123"
        or a page path "/owner/repo/issues/123".

        Raises:
            ValueError: If the value is not an issue reference
        """
        text = value.strip()
        match = _SHORT_REF_RE.match(text)
        if not match:
            if "://" in text:
                text = "/" + text.split("://", 1)[1].split("/", 1)[-1]
            text = text.split("?", 1)[0].split("#", 1)[0]
            match = _PATH_RE.match(text)
        if not match:
            raise ValueError(f"Not an issue reference: {value!r}")
        owner, repo, number = match.groups()
        return cls(owner=owner, repo=repo, number=int(number))

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


@dataclass(frozen=True)
class Label:
    name: str
    color: str = ""


@dataclass(frozen=True)
class IssueSnapshot:
    """An issue as fetched from the REST API"""
    owner: str
    repo: str
    number: int
    title: str = ""
    body: str = ""
    labels: Tuple[Label, ...] = ()
    comment_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assignees: Tuple[str, ...] = ()
    html_url: str = ""

    @classmethod
    def from_api(cls, ref: IssueRef, payload: Dict[str, Any]) -> IssueSnapshot:
        """Build a snapshot from a GET /repos/{owner}/{repo}/issues/{n} payload"""
        labels = tuple(
            Label(name=item.get("name") or "", color=item.get("color") or "")
            for item in payload.get("labels") or []
            if isinstance(item, dict)
        )
        assignees = tuple(
            item.get("login") or ""
            for item in payload.get("assignees") or []
            if isinstance(item, dict)
        )
        return cls(
            owner=ref.owner,
            repo=ref.repo,
            number=ref.number,
            title=payload.get("title") or "",
            body=payload.get("body") or "",
            labels=labels,
            comment_count=int(payload.get("comments") or 0),
            created_at=parse_timestamp(payload.get("created_at")),
            updated_at=parse_timestamp(payload.get("updated_at")),
            assignees=assignees,
            html_url=payload.get("html_url") or "",
        )

    @property
    def ref(self) -> IssueRef:
        return IssueRef(self.owner, self.repo, self.number)

    @property
    def label_names(self) -> List[str]:
        return [label.name.lower() for label in self.labels]

    @property
    def code_block_count(self) -> int:
        """Number of ``` fence markers in the body"""
        return self.body.count("```")

    @property
    def link_count(self) -> int:
        return len(re.findall(r"https?://", self.body))


class AuthorAssociation(str, Enum):
    OWNER = "owner"
    MEMBER = "member"
    COLLABORATOR = "collaborator"
    OTHER = "other"

    @classmethod
    def from_api(cls, value: Optional[str]) -> AuthorAssociation:
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.OTHER

    @property
    def is_maintainer(self) -> bool:
        return self is not AuthorAssociation.OTHER


@dataclass(frozen=True)
class CommentRecord:
    """A comment from the API or scraped from the page"""
    author: str
    body: str
    created_at: Optional[datetime] = None
    author_association: AuthorAssociation = AuthorAssociation.OTHER
    url: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> CommentRecord:
        user = payload.get("user") or {}
        return cls(
            author=user.get("login") or "Someone",
            body=payload.get("body") or "",
            created_at=parse_timestamp(payload.get("created_at")),
            author_association=AuthorAssociation.from_api(payload.get("author_association")),
            url=payload.get("html_url") or "",
        )


# =============================================================================
# PULL REQUESTS, CLAIMS, FORKS
# =============================================================================

class PRSource(str, Enum):
    """Where a pull request reference came from"""
    SIDEBAR = "sidebar"
    SEARCH = "search"


@dataclass(frozen=True)
class PullRequestRef:
    """A pull request linked to the issue. Identity is the PR number."""
    url: str
    number: int
    title: str = ""
    is_draft: bool = False
    source: PRSource = PRSource.SIDEBAR
    author: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_search_item(cls, item: Dict[str, Any]) -> PullRequestRef:
        user = item.get("user") or {}
        return cls(
            url=item.get("html_url") or "",
            number=int(item.get("number") or 0),
            title=item.get("title") or "",
            is_draft=bool(item.get("draft")),
            source=PRSource.SEARCH,
            author=user.get("login"),
            created_at=parse_timestamp(item.get("created_at")),
            updated_at=parse_timestamp(item.get("updated_at")),
        )

    @property
    def short_title(self) -> str:
        if len(self.title) > 45:
            return self.title[:45] + "…"
        return self.title


@dataclass(frozen=True)
class ClaimRecord:
    """
    A comment in which someone said they are working on the issue.

    Age and staleness are derived from `evaluated_at`; use `at()` to
    re-evaluate the same claim at a later instant.
    """
    claimer: str
    comment_url: str
    claimed_at: datetime
    keyword: str
    evaluated_at: datetime

    @property
    def age_hours(self) -> float:
        return max(0.0, (self.evaluated_at - self.claimed_at).total_seconds() / 3600)

    @property
    def is_stale(self) -> bool:
        return self.age_hours > STALE_CLAIM_HOURS

    def at(self, now: datetime) -> ClaimRecord:
        return replace(self, evaluated_at=max(now, self.evaluated_at))


@dataclass(frozen=True)
class ForkMatch:
    """A recently pushed fork with a branch that looks like work on the issue"""
    fork_url: str
    owner: str
    branch_name: str
    pushed_at: datetime


@dataclass(frozen=True)
class WorkloadRecord:
    """Open-PR load of one assignee"""
    login: str
    avatar_url: str = ""
    open_pr_count: Optional[int] = None

    @property
    def overloaded(self) -> bool:
        return self.open_pr_count is not None and self.open_pr_count > OVERLOADED_OPEN_PRS


# =============================================================================
# ASSESSMENTS
# =============================================================================

class SignalPolarity(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class DifficultySignal:
    """One rule firing in the difficulty score"""
    polarity: SignalPolarity
    text: str
    delta: int


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    EASY_MEDIUM = "easy-medium"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"

    @property
    def label(self) -> str:
        return _LEVEL_LABELS[self]

    @property
    def beginner_friendly(self) -> bool:
        return self in (DifficultyLevel.BEGINNER, DifficultyLevel.EASY_MEDIUM)


_LEVEL_LABELS = {
    DifficultyLevel.BEGINNER: "Beginner",
    DifficultyLevel.EASY_MEDIUM: "Easy-Medium",
    DifficultyLevel.MEDIUM: "Intermediate",
    DifficultyLevel.HARD: "Advanced",
    DifficultyLevel.EXPERT: "Expert",
}


@dataclass(frozen=True)
class DifficultyAssessment:
    score: int
    level: DifficultyLevel
    signals: Tuple[DifficultySignal, ...] = ()

    @property
    def label(self) -> str:
        return self.level.label

    @property
    def can_beginner(self) -> bool:
        return self.level.beginner_friendly


class MomentumLabel(str, Enum):
    ACTIVE = "Active"
    SLOW = "Slow"
    STALLED = "Stalled"

    @property
    def color(self) -> str:
        return {
            MomentumLabel.ACTIVE: "#2ea44f",
            MomentumLabel.SLOW: "#d29922",
            MomentumLabel.STALLED: "#cf222e",
        }[self]


@dataclass(frozen=True)
class MomentumAssessment:
    """
    Engagement score for an issue.

    Day counts are whole days (floored). `maintainer_response_days` is None
    when no owner/member/collaborator has commented.
    """
    score: int
    label: MomentumLabel
    days_since_update: int
    days_since_open: int
    comment_count: int
    maintainer_response_days: Optional[int] = None
    last_activity: Optional[datetime] = None


class ContributionStatus(str, Enum):
    """Tri-state verdict shown to a prospective contributor"""
    CLEAR = "clear"
    CLAIMED = "claimed"
    ACTIVE_PR = "active-pr"

    @property
    def color(self) -> str:
        return {
            ContributionStatus.CLEAR: "green",
            ContributionStatus.CLAIMED: "yellow",
            ContributionStatus.ACTIVE_PR: "red",
        }[self]


# =============================================================================
# DERIVED PROJECTIONS
# =============================================================================

@dataclass(frozen=True)
class RadarStats:
    """Six 0-100 axes for the issue health chart"""
    activity: float
    discussion: float
    maintainer_response: float
    pr_progress: float
    simplicity: float
    documentation: float


@dataclass(frozen=True)
class ActivityBucket:
    date: str  # YYYY-MM-DD (UTC)
    count: int


@dataclass(frozen=True)
class PageContext:
    """What the page collaborator scraped: comments and sidebar PR links"""
    comments: Tuple[CommentRecord, ...] = ()
    sidebar_prs: Tuple[PullRequestRef, ...] = ()


@dataclass(frozen=True)
class RadarReport:
    """Everything one evaluation produced, handed to the presentation layer"""
    ref: IssueRef
    status: ContributionStatus
    difficulty: DifficultyAssessment
    stats: RadarStats
    timeline: Tuple[ActivityBucket, ...]
    issue: Optional[IssueSnapshot] = None
    prs: Tuple[PullRequestRef, ...] = ()
    claims: Tuple[ClaimRecord, ...] = ()
    forks: Tuple[ForkMatch, ...] = ()
    momentum: Optional[MomentumAssessment] = None
    workloads: Optional[Tuple[WorkloadRecord, ...]] = None
    status_reason: str = ""
    headline: str = ""
    errors: Tuple[str, ...] = ()  # collector name: message, for diagnostics
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dict"""
        return _jsonable(asdict(self)) | {
            "status_color": self.status.color,
            "difficulty": {
                **_jsonable(asdict(self.difficulty)),
                "label": self.difficulty.label,
                "can_beginner": self.difficulty.can_beginner,
            },
            "claims": [
                {**_jsonable(asdict(c)), "age_hours": int(c.age_hours), "is_stale": c.is_stale}
                for c in self.claims
            ],
            "workloads": None if self.workloads is None else [
                {**_jsonable(asdict(w)), "overloaded": w.overloaded}
                for w in self.workloads
            ],
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_iso(value)
    return value
