"""
Tests for chart projections.
"""

from datetime import date, datetime, timezone

import pytest

from core.models import (
    CommentRecord,
    DifficultyAssessment,
    DifficultyLevel,
    IssueSnapshot,
    MomentumAssessment,
    MomentumLabel,
    PullRequestRef,
)
from scoring.stats import build_activity_timeline, build_radar_stats

DIFFICULTY = DifficultyAssessment(score=30, level=DifficultyLevel.EASY_MEDIUM)


def momentum(days_since_update=2, response_days=None):
    return MomentumAssessment(
        score=60,
        label=MomentumLabel.SLOW,
        days_since_update=days_since_update,
        days_since_open=10,
        comment_count=3,
        maintainer_response_days=response_days,
    )


class TestRadarStats:

    def test_axes(self):
        issue = IssueSnapshot(
            owner="o", repo="r", number=1,
            body="a" * 500 + " ```x``` see https://example.com",
            comment_count=3,
        )
        prs = [PullRequestRef(url="u", number=1)]

        stats = build_radar_stats(issue, momentum(2, response_days=5), prs, DIFFICULTY)

        assert stats.activity == 94
        assert stats.discussion == 21
        assert stats.maintainer_response == 80
        assert stats.pr_progress == 25
        assert stats.simplicity == 70
        assert stats.documentation == pytest.approx(len(issue.body) / 50 + 16 + 5)

    def test_clamping(self):
        issue = IssueSnapshot(owner="o", repo="r", number=1, body="a" * 6000, comment_count=40)
        prs = [PullRequestRef(url="u", number=n) for n in range(6)]

        stats = build_radar_stats(issue, momentum(50, response_days=40), prs, DIFFICULTY)

        assert stats.activity == 0
        assert stats.discussion == 100
        assert stats.maintainer_response == 0
        assert stats.pr_progress == 100
        assert stats.documentation == 100

    def test_missing_momentum_and_issue(self):
        """No momentum: no activity and the fixed low maintainer score"""
        stats = build_radar_stats(None, None, [], DIFFICULTY)

        assert stats.activity == 0
        assert stats.maintainer_response == 10
        assert stats.discussion == 0
        assert stats.documentation == 0

    def test_no_maintainer_response(self):
        stats = build_radar_stats(None, momentum(1, response_days=None), [], DIFFICULTY)
        assert stats.maintainer_response == 10


class TestActivityTimeline:

    def test_thirty_zero_filled_days(self):
        timeline = build_activity_timeline([], today=date(2024, 6, 30))

        assert len(timeline) == 30
        assert timeline[0].date == "2024-06-01"
        assert timeline[-1].date == "2024-06-30"
        assert all(bucket.count == 0 for bucket in timeline)

    def test_counts_by_utc_day(self):
        comments = [
            CommentRecord("a", "", datetime(2024, 6, 30, 1, tzinfo=timezone.utc)),
            CommentRecord("b", "", datetime(2024, 6, 30, 23, tzinfo=timezone.utc)),
            CommentRecord("c", "", datetime(2024, 6, 15, 12, tzinfo=timezone.utc)),
            CommentRecord("d", "", datetime(2024, 5, 1, tzinfo=timezone.utc)),
            CommentRecord("e", "", None),
        ]

        timeline = build_activity_timeline(comments, today=date(2024, 6, 30))
        counts = {bucket.date: bucket.count for bucket in timeline}

        assert counts["2024-06-30"] == 2
        assert counts["2024-06-15"] == 1
        assert sum(counts.values()) == 3
