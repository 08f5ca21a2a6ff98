"""
Chart projections: six 0-100 health axes and a 30-day comment histogram.

Both are pure transforms of data the pipeline already gathered; the
presentation layer draws them.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from core.models import (
    ActivityBucket,
    CommentRecord,
    DifficultyAssessment,
    IssueSnapshot,
    MomentumAssessment,
    PullRequestRef,
    RadarStats,
)

TIMELINE_DAYS = 30
NO_MAINTAINER_RESPONSE = 10


def build_radar_stats(
    issue: Optional[IssueSnapshot],
    momentum: Optional[MomentumAssessment],
    prs: Sequence[PullRequestRef],
    difficulty: DifficultyAssessment,
) -> RadarStats:
    """
    Project the evaluation onto the health radar axes.

    Missing momentum counts as no recent activity and no maintainer
    response; a missing issue counts as no discussion and no documentation.
    """
    activity = max(0, 100 - 3 * momentum.days_since_update) if momentum else 0

    comment_count = issue.comment_count if issue else 0
    discussion = min(100, 7 * comment_count)

    if momentum is not None and momentum.maintainer_response_days is not None:
        maintainer_response = max(0, 100 - 4 * momentum.maintainer_response_days)
    else:
        maintainer_response = NO_MAINTAINER_RESPONSE

    pr_progress = min(100, 25 * len(prs))
    simplicity = max(0, 100 - difficulty.score)

    if issue is not None:
        documentation = min(
            100,
            len(issue.body) / 50 + 8 * issue.code_block_count + 5 * issue.link_count,
        )
    else:
        documentation = 0

    return RadarStats(
        activity=activity,
        discussion=discussion,
        maintainer_response=maintainer_response,
        pr_progress=pr_progress,
        simplicity=simplicity,
        documentation=documentation,
    )


def build_activity_timeline(
    comments: Iterable[CommentRecord],
    today: Optional[date] = None,
    days: int = TIMELINE_DAYS,
) -> List[ActivityBucket]:
    """
    Count comments per UTC day for the last `days` days, oldest first.

    Args:
        comments: Comment records (those without a timestamp are ignored)
        today: Last day of the window (defaults to today, UTC)
        days: Window length

    Returns:
        Exactly `days` buckets, zero-filled
    """
    end = today or datetime.now(timezone.utc).date()
    counts: Dict[str, int] = {
        (end - timedelta(days=offset)).isoformat(): 0
        for offset in range(days - 1, -1, -1)
    }
    for comment in comments:
        if comment.created_at is None:
            continue
        key = comment.created_at.astimezone(timezone.utc).date().isoformat()
        if key in counts:
            counts[key] += 1
    return [ActivityBucket(date=key, count=count) for key, count in counts.items()]
