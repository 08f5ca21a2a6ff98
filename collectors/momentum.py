"""
Momentum collector: how alive is this issue?

Score starts at 50 and moves with three signals:
- Recency of the last update
- Comment volume
- How fast the first maintainer (owner/member/collaborator) responded

Clamped to 0-100 and labelled Active (>=70), Slow (>=40) or Stalled.
A failed fetch yields no assessment at all; consumers apply neutral
defaults.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import List, Optional, Sequence

from collectors.base import BaseCollector
from collectors.issue import fetch_issue_details
from core.models import CommentRecord, IssueSnapshot, MomentumAssessment, MomentumLabel
from utils.timestamps import days_between

logger = logging.getLogger(__name__)

BASELINE_SCORE = 50
ACTIVE_THRESHOLD = 70
SLOW_THRESHOLD = 40


def recency_delta(days_since_update: float) -> int:
    if days_since_update < 1:
        return 25
    if days_since_update < 7:
        return 15
    if days_since_update < 30:
        return 5
    if days_since_update < 90:
        return -10
    return -30


def comment_volume_delta(comment_count: int) -> int:
    if comment_count > 10:
        return 15
    if comment_count > 5:
        return 8
    if comment_count > 1:
        return 3
    if comment_count == 0:
        return -15
    return 0


def maintainer_delta(response_days: Optional[float]) -> int:
    if response_days is None:
        return -15
    if response_days < 1:
        return 20
    if response_days < 7:
        return 10
    if response_days >= 30:
        return -10
    return 0


def maintainer_response_days(
    issue: IssueSnapshot,
    comments: Sequence[CommentRecord],
) -> Optional[float]:
    """
    Days from issue creation to the first maintainer comment.

    None when no maintainer has commented or the issue has no creation time.
    """
    if issue.created_at is None:
        return None
    for comment in maintainer_comments(comments):
        return max(0.0, days_between(issue.created_at, comment.created_at))
    return None


def maintainer_comments(comments: Sequence[CommentRecord]) -> List[CommentRecord]:
    return [
        c for c in comments
        if c.author_association.is_maintainer and c.created_at is not None
    ]


def label_for(score: int) -> MomentumLabel:
    if score >= ACTIVE_THRESHOLD:
        return MomentumLabel.ACTIVE
    if score >= SLOW_THRESHOLD:
        return MomentumLabel.SLOW
    return MomentumLabel.STALLED


def score_momentum(
    issue: IssueSnapshot,
    comments: Sequence[CommentRecord],
    now: datetime,
) -> MomentumAssessment:
    """
    Compute the momentum assessment for an issue.

    Args:
        issue: Issue snapshot (timestamps and comment count)
        comments: Comment thread in creation order
        now: Evaluation instant

    Returns:
        MomentumAssessment with whole-day counts
    """
    last_activity = issue.updated_at or issue.created_at
    since_update = days_between(last_activity, now) if last_activity else 0.0
    since_open = days_between(issue.created_at, now) if issue.created_at else 0.0
    response_days = maintainer_response_days(issue, comments)

    score = (
        BASELINE_SCORE
        + recency_delta(since_update)
        + comment_volume_delta(issue.comment_count)
    )
    lag_unknown = issue.created_at is None and bool(maintainer_comments(comments))
    # A maintainer replied but the lag cannot be measured: no adjustment
    if not lag_unknown:
        score += maintainer_delta(response_days)
    score = max(0, min(100, score))

    return MomentumAssessment(
        score=score,
        label=label_for(score),
        days_since_update=math.floor(max(0.0, since_update)),
        days_since_open=math.floor(max(0.0, since_open)),
        comment_count=issue.comment_count,
        maintainer_response_days=(
            math.floor(response_days) if response_days is not None else None
        ),
        last_activity=last_activity,
    )


class MomentumCollector(BaseCollector[Optional[MomentumAssessment]]):
    collector_name = "momentum"

    async def _collect(self) -> Optional[MomentumAssessment]:
        details = await fetch_issue_details(self.api, self.ref)
        assessment = score_momentum(details.issue, details.comments, self.now)
        logger.info(f"Momentum for {self.ref}: {assessment.score} ({assessment.label.value})")
        return assessment

    def _default(self) -> Optional[MomentumAssessment]:
        return None
