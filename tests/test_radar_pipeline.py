"""
End-to-end tests for IssueRadarPipeline against a fake GitHub API.

All HTTP goes through httpx.MockTransport; no network access is needed.
"""
import asyncio
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx
import pytest

from connectors.github_api import GitHubAPI
from connectors.github_transport import GitHubTransport
from core.models import (
    CommentRecord,
    ContributionStatus,
    DifficultyLevel,
    IssueRef,
    MomentumLabel,
    PageContext,
    PullRequestRef,
    RadarReport,
)
from utils.cache_gateway import CacheGateway
from utils.rate_limiter import AsyncRateLimiter
from utils.timestamps import to_iso
from workflows.pipeline import FEATURES, IssueRadarPipeline, RadarConfig
from workflows.session import RadarSession

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
REF = IssueRef("octo", "repo", 42)


def ago(**kwargs) -> str:
    return to_iso(NOW - timedelta(**kwargs))


class FakeGitHub:
    """Routes requests to canned payloads and records every path hit"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.paths: List[str] = []
        self.queries: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.paths.append(path)
        if self.fail:
            return httpx.Response(500, json={"message": "Server Error"})

        if path == "/repos/octo/repo/issues/42":
            return httpx.Response(200, json={
                "title": "Fix typo in README",
                "body": "The word 'teh' should be 'the'.",
                "labels": [{"name": "good first issue"}],
                "comments": 3,
                "created_at": ago(days=10),
                "updated_at": ago(hours=6),
                "assignees": [{"login": "alice", "avatar_url": "https://avatars/alice"}],
                "html_url": "https://github.com/octo/repo/issues/42",
            })
        if path == "/repos/octo/repo/issues/42/comments":
            return httpx.Response(200, json=[
                {
                    "user": {"login": "maint"},
                    "body": "Good catch!",
                    "author_association": "OWNER",
                    "created_at": ago(days=9),
                    "html_url": "https://github.com/octo/repo/issues/42#c1",
                },
                {
                    "user": {"login": "bob"},
                    "body": "I'm working on this",
                    "author_association": "NONE",
                    "created_at": ago(hours=5),
                    "html_url": "https://github.com/octo/repo/issues/42#c2",
                },
            ])
        if path == "/search/issues":
            query = request.url.params.get("q", "")
            self.queries.append(query)
            if "author:" in query:
                return httpx.Response(200, json={"total_count": 3, "items": []})
            return httpx.Response(200, json={"total_count": 0, "items": []})
        if path == "/repos/octo/repo/forks":
            return httpx.Response(200, json=[])
        return httpx.Response(404, json={"message": "Not Found"})


def make_pipeline(fake: FakeGitHub, features: Optional[Dict[str, bool]] = None) -> IssueRadarPipeline:
    transport = GitHubTransport(
        transport=httpx.MockTransport(fake),
        backoff_base=0,
        core_limiter=AsyncRateLimiter(rate=None),
        search_limiter=AsyncRateLimiter(rate=None),
    )
    config = RadarConfig()
    if features:
        config.features.update(features)
    return IssueRadarPipeline(config, api=GitHubAPI(transport, cache=CacheGateway()), clock=lambda: NOW)


async def evaluate(fake: FakeGitHub, page: Optional[PageContext] = None, **features) -> RadarReport:
    pipeline = make_pipeline(fake, features)
    try:
        return await pipeline.evaluate(REF, page)
    finally:
        await pipeline.api.transport.shutdown()


class TestFullEvaluation:
    """Test a healthy evaluation"""

    @pytest.mark.asyncio
    async def test_fresh_claim_makes_issue_claimed(self):
        """A claim 5 hours old should yield claimed with bob as claimer"""
        report = await evaluate(FakeGitHub())

        assert report.status is ContributionStatus.CLAIMED
        assert report.headline == "bob recently claimed this"
        assert [c.claimer for c in report.claims] == ["bob"]
        assert report.claims[0].comment_url.endswith("#c2")
        assert report.errors == ()

    @pytest.mark.asyncio
    async def test_difficulty_and_momentum(self):
        report = await evaluate(FakeGitHub())

        assert report.difficulty.level is DifficultyLevel.BEGINNER
        assert report.difficulty.can_beginner
        assert report.momentum is not None
        assert report.momentum.label is MomentumLabel.ACTIVE
        assert report.momentum.maintainer_response_days == 1

    @pytest.mark.asyncio
    async def test_workload_and_stats(self):
        report = await evaluate(FakeGitHub())

        assert [(w.login, w.open_pr_count) for w in report.workloads] == [("alice", 3)]
        assert report.stats.discussion == 21
        assert len(report.timeline) == 30
        assert sum(bucket.count for bucket in report.timeline) == 2

    @pytest.mark.asyncio
    async def test_shared_issue_fetch(self):
        """Issue, momentum and workload collectors share one issue request"""
        fake = FakeGitHub()
        await evaluate(fake)

        counts = Counter(fake.paths)
        assert counts["/repos/octo/repo/issues/42"] == 1
        assert counts["/repos/octo/repo/issues/42/comments"] == 1

    @pytest.mark.asyncio
    async def test_sidebar_pr_means_active_pr(self):
        """A sidebar PR outranks the fresh claim"""
        page = PageContext(sidebar_prs=(
            PullRequestRef(url="https://github.com/octo/repo/pull/50", number=50),
        ))
        report = await evaluate(FakeGitHub(), page)

        assert report.status is ContributionStatus.ACTIVE_PR
        assert [pr.number for pr in report.prs] == [50]
        # One prior attempt nudges difficulty up
        assert report.difficulty.signals[-1].text == "Previous PRs attempted"

    @pytest.mark.asyncio
    async def test_page_comments_preferred_for_claims(self):
        page = PageContext(comments=(
            CommentRecord(author="carol", body="/assign", created_at=NOW - timedelta(hours=1)),
        ))
        report = await evaluate(FakeGitHub(), page)

        assert [c.claimer for c in report.claims] == ["carol"]
        assert report.claims[0].comment_url == "https://github.com/octo/repo/issues/42"


class TestSoftFailure:
    """Every remote failure should degrade to neutral results"""

    @pytest.mark.asyncio
    async def test_all_requests_failing(self):
        report = await evaluate(FakeGitHub(fail=True))

        assert report.status is ContributionStatus.CLEAR
        assert report.difficulty.score == 50
        assert report.difficulty.level is DifficultyLevel.MEDIUM
        assert report.momentum is None
        assert report.workloads is None
        assert report.issue is None
        assert report.stats.maintainer_response == 10
        assert report.stats.activity == 0
        assert all(bucket.count == 0 for bucket in report.timeline)

        failed = {error.split(":")[0] for error in report.errors}
        assert failed == {"issue", "pull_requests", "momentum", "forks", "workload"}

    @pytest.mark.asyncio
    async def test_failure_keeps_sidebar_prs(self):
        page = PageContext(sidebar_prs=(PullRequestRef(url="u", number=9),))
        report = await evaluate(FakeGitHub(fail=True), page)

        assert report.status is ContributionStatus.ACTIVE_PR
        assert [pr.number for pr in report.prs] == [9]


class TestFeatureFlags:

    @pytest.mark.asyncio
    async def test_disabled_features_make_no_requests(self):
        """Only the issue itself is fetched when every feature is off"""
        fake = FakeGitHub()
        report = await evaluate(fake, **{name: False for name in FEATURES})

        assert set(fake.paths) == {
            "/repos/octo/repo/issues/42",
            "/repos/octo/repo/issues/42/comments",
        }
        assert report.prs == ()
        assert report.claims == ()
        assert report.forks == ()
        assert report.momentum is None
        assert report.workloads is None
        assert report.status is ContributionStatus.CLEAR

    @pytest.mark.asyncio
    async def test_claims_disabled(self):
        report = await evaluate(FakeGitHub(), claims=False)

        assert report.claims == ()
        assert report.status is ContributionStatus.CLEAR
        assert report.momentum is not None


class TestRadarConfig:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
        monkeypatch.setenv("RADAR_FEATURE_FORKS", "false")

        config = RadarConfig.from_env()

        assert config.github_token == "ghp_test"
        assert not config.is_enabled("forks")
        assert config.is_enabled("pr")
        assert config.rate_limit_hint == "5000 req/hr"

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        config = RadarConfig.from_env()

        assert config.github_token is None
        assert config.rate_limit_hint == "60 req/hr"

    def test_token_prefix_warning(self):
        assert RadarConfig(github_token="abc123").token_warning is not None
        assert RadarConfig(github_token="github_pat_x").token_warning is None


class StubPipeline:
    """Pipeline whose evaluations finish only when released"""

    def __init__(self):
        self.gates: Dict[IssueRef, asyncio.Event] = {}

    async def evaluate(self, ref: IssueRef, page=None):
        gate = self.gates.setdefault(ref, asyncio.Event())
        await gate.wait()
        return f"report for {ref}"

    def release(self, ref: IssueRef) -> None:
        self.gates.setdefault(ref, asyncio.Event()).set()


class TestRadarSession:

    @pytest.mark.asyncio
    async def test_superseded_result_is_discarded(self):
        """A slow evaluation for an old issue must not overwrite the new one"""
        stub = StubPipeline()
        session = RadarSession(stub)
        first_ref, second_ref = IssueRef("o", "r", 1), IssueRef("o", "r", 2)

        first = asyncio.create_task(session.navigate(first_ref))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.navigate(second_ref))
        await asyncio.sleep(0)

        stub.release(second_ref)
        assert await second == "report for o/r#2"
        stub.release(first_ref)
        assert await first is None

        assert session.current == "report for o/r#2"
        assert session.current_ref == second_ref

    @pytest.mark.asyncio
    async def test_sidebar_toggle(self):
        stub = StubPipeline()
        session = RadarSession(stub)
        ref = IssueRef("o", "r", 1)

        assert session.toggle_sidebar() is False

        stub.release(ref)
        await session.navigate(ref)
        assert session.toggle_sidebar() is True
        assert session.toggle_sidebar() is False
