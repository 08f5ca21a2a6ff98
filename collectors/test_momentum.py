"""
Tests for momentum scoring.
"""

from datetime import datetime, timedelta, timezone

import pytest

from collectors.momentum import (
    comment_volume_delta,
    label_for,
    maintainer_delta,
    maintainer_response_days,
    recency_delta,
    score_momentum,
)
from core.models import AuthorAssociation, CommentRecord, IssueSnapshot, MomentumLabel

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def issue(created_days_ago=10, updated_days_ago=None, comments=0):
    return IssueSnapshot(
        owner="octo",
        repo="repo",
        number=1,
        comment_count=comments,
        created_at=NOW - timedelta(days=created_days_ago),
        updated_at=(
            NOW - timedelta(days=updated_days_ago) if updated_days_ago is not None else None
        ),
    )


def maintainer_comment(days_ago, association=AuthorAssociation.MEMBER):
    return CommentRecord(
        author="maint",
        body="thanks",
        created_at=NOW - timedelta(days=days_ago),
        author_association=association,
    )


class TestDeltas:

    @pytest.mark.parametrize("days,expected", [
        (0.5, 25), (1, 15), (6.9, 15), (7, 5), (29, 5), (30, -10), (89, -10), (90, -30),
    ])
    def test_recency(self, days, expected):
        assert recency_delta(days) == expected

    @pytest.mark.parametrize("count,expected", [
        (0, -15), (1, 0), (2, 3), (5, 3), (6, 8), (10, 8), (11, 15),
    ])
    def test_comment_volume(self, count, expected):
        assert comment_volume_delta(count) == expected

    @pytest.mark.parametrize("days,expected", [
        (None, -15), (0.2, 20), (3, 10), (7, 0), (29, 0), (30, -10),
    ])
    def test_maintainer(self, days, expected):
        assert maintainer_delta(days) == expected

    def test_labels(self):
        assert label_for(70) is MomentumLabel.ACTIVE
        assert label_for(69) is MomentumLabel.SLOW
        assert label_for(40) is MomentumLabel.SLOW
        assert label_for(39) is MomentumLabel.STALLED


class TestMaintainerResponse:

    def test_first_maintainer_comment(self):
        """Non-maintainer comments are ignored"""
        snapshot = issue(created_days_ago=10)
        comments = [
            CommentRecord(author="user", body="+1", created_at=NOW - timedelta(days=9)),
            maintainer_comment(7, AuthorAssociation.OWNER),
            maintainer_comment(1),
        ]
        assert maintainer_response_days(snapshot, comments) == pytest.approx(3)

    def test_none_without_maintainer(self):
        comments = [CommentRecord(author="user", body="+1", created_at=NOW)]
        assert maintainer_response_days(issue(), comments) is None


class TestScoreMomentum:

    def test_active_issue(self):
        """Fresh update, busy thread, quick maintainer reply"""
        snapshot = issue(created_days_ago=2, updated_days_ago=0.1, comments=12)
        result = score_momentum(snapshot, [maintainer_comment(1.9)], NOW)

        # 50 + 25 + 15 + 20 clamps to 100
        assert result.score == 100
        assert result.label is MomentumLabel.ACTIVE
        assert result.maintainer_response_days == 0
        assert result.days_since_open == 2

    def test_stalled_issue(self):
        """Old, silent issue with no maintainer"""
        snapshot = issue(created_days_ago=400, updated_days_ago=200, comments=0)
        result = score_momentum(snapshot, [], NOW)

        # 50 - 30 - 15 - 15
        assert result.score == 0
        assert result.label is MomentumLabel.STALLED
        assert result.days_since_update == 200
        assert result.maintainer_response_days is None

    def test_missing_update_uses_creation(self):
        """Without updated_at the creation time is the last activity"""
        snapshot = issue(created_days_ago=3, updated_days_ago=None, comments=1)
        result = score_momentum(snapshot, [], NOW)

        assert result.days_since_update == 3
        assert result.last_activity == snapshot.created_at
        # 50 + 15 + 0 - 15
        assert result.score == 50
        assert result.label is MomentumLabel.SLOW

    def test_days_are_floored(self):
        snapshot = issue(created_days_ago=5.9, updated_days_ago=1.5, comments=3)
        result = score_momentum(snapshot, [], NOW)

        assert result.days_since_update == 1
        assert result.days_since_open == 5
        assert result.comment_count == 3


class TestMissingCreationTime:

    def _issue(self):
        return IssueSnapshot(
            owner="octo",
            repo="repo",
            number=1,
            comment_count=0,
            created_at=None,
            updated_at=NOW - timedelta(hours=12),
        )

    def test_maintainer_lag_unknown(self):
        """Without a creation time the lag cannot be measured"""
        assert maintainer_response_days(self._issue(), [maintainer_comment(0.1)]) is None

    def test_maintainer_reply_gives_no_adjustment(self):
        """A maintainer reply with unknown lag earns neither bonus nor penalty"""
        result = score_momentum(self._issue(), [maintainer_comment(0.1)], NOW)

        # 50 + 25 (updated <1d) - 15 (no comments)
        assert result.score == 60
        assert result.maintainer_response_days is None

    def test_no_maintainer_still_penalised(self):
        result = score_momentum(self._issue(), [], NOW)

        # 50 + 25 - 15 - 15
        assert result.score == 45
