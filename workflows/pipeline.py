"""
Pipeline Orchestrator for Issue Radar

Evaluates one issue:
  gather (issue, PRs, momentum, forks, workload) → claims → difficulty
  → status → chart projections

Coordinates:
- Concurrent collectors sharing one cached GitHub API
- Feature flags (each disabled feature contributes its neutral default)
- Soft failures: a failed collector never aborts the evaluation

Usage:
    from workflows.pipeline import IssueRadarPipeline, RadarConfig

    async with IssueRadarPipeline(RadarConfig.from_env()) as pipeline:
        report = await pipeline.evaluate(IssueRef.parse("octo/repo#42"))
        print(report.status.value, report.difficulty.label)
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from collectors.base import BaseCollector, CollectorStatus
from collectors.claims import detect_claims
from collectors.forks import ForkActivityCollector
from collectors.issue import IssueDetails, IssueDetailsCollector
from collectors.momentum import MomentumCollector
from collectors.pull_requests import PullRequestCollector
from collectors.workload import WorkloadCollector
from connectors.github_api import GitHubAPI
from connectors.github_transport import GitHubTransport
from core.models import IssueRef, PageContext, RadarReport
from scoring.difficulty import score_difficulty
from scoring.stats import build_activity_timeline, build_radar_stats
from scoring.status import explain_status
from utils.timestamps import utcnow

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

FEATURES = ("pr", "claims", "momentum", "forks", "workload")
TOKEN_PREFIXES = ("ghp_", "github_pat_")


def _default_features() -> Dict[str, bool]:
    return {name: True for name in FEATURES}


@dataclass
class RadarConfig:
    """Settings: optional token plus per-feature switches (all on by default)"""

    github_token: Optional[str] = None
    features: Dict[str, bool] = field(default_factory=_default_features)

    @classmethod
    def from_env(cls) -> RadarConfig:
        """
        Load configuration from environment variables.

        GITHUB_TOKEN, and RADAR_FEATURE_<NAME>=true|false for each feature.
        """
        features = {
            name: os.getenv(f"RADAR_FEATURE_{name.upper()}", "true").lower() == "true"
            for name in FEATURES
        }
        config = cls(github_token=os.getenv("GITHUB_TOKEN") or None, features=features)
        warning = config.token_warning
        if warning:
            logger.warning(warning)
        return config

    def is_enabled(self, feature: str) -> bool:
        return self.features.get(feature, True)

    @property
    def token_warning(self) -> Optional[str]:
        if self.github_token and not self.github_token.startswith(TOKEN_PREFIXES):
            return "GITHUB_TOKEN should start with ghp_ or github_pat_"
        return None

    @property
    def rate_limit_hint(self) -> str:
        return "5000 req/hr" if self.github_token else "60 req/hr"


# =============================================================================
# PIPELINE
# =============================================================================

class IssueRadarPipeline:
    """
    Runs one evaluation per call to evaluate(). Holds no per-issue state.

    Args:
        config: Token and feature flags (default: RadarConfig.from_env())
        api: Cached GitHub API (default: built from config.github_token)
        clock: Returns the evaluation instant (injectable for tests)
    """

    def __init__(
        self,
        config: Optional[RadarConfig] = None,
        api: Optional[GitHubAPI] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config or RadarConfig.from_env()
        self._owns_transport = api is None
        self.api = api or GitHubAPI(GitHubTransport(token=self.config.github_token))
        self._clock = clock

    async def __aenter__(self) -> IssueRadarPipeline:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self.api.transport.shutdown()

    async def evaluate(self, ref: IssueRef, page: Optional[PageContext] = None) -> RadarReport:
        """
        Evaluate an issue.

        Args:
            ref: Issue to evaluate
            page: Comments and sidebar PRs scraped from the page, if any

        Returns:
            RadarReport snapshot; never raises for remote failures
        """
        now = self._clock()
        page = page or PageContext()
        logger.info(f"Scanning {ref} (token: {'yes' if self.config.github_token else 'no'})")

        issue_collector = IssueDetailsCollector(self.api, ref, now=now)
        pr_collector = PullRequestCollector(self.api, ref, sidebar_prs=page.sidebar_prs, now=now)
        momentum_collector = MomentumCollector(self.api, ref, now=now)
        fork_collector = ForkActivityCollector(self.api, ref, now=now)
        workload_collector = WorkloadCollector(self.api, ref, now=now)

        collectors: List[Tuple[Optional[str], BaseCollector[Any], Any]] = [
            (None, issue_collector, None),
            ("pr", pr_collector, []),
            ("momentum", momentum_collector, None),
            ("forks", fork_collector, []),
            ("workload", workload_collector, None),
        ]
        enabled = [
            (collector, default) for feature, collector, default in collectors
            if feature is None or self.config.is_enabled(feature)
        ]

        outcomes = await asyncio.gather(
            *(collector.run() for collector, _ in enabled),
            return_exceptions=True,
        )
        results: Dict[str, Any] = {
            collector.collector_name: default for _, collector, default in collectors
        }
        for (collector, default), outcome in zip(enabled, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"{collector.collector_name} raised unexpectedly: {outcome}")
                results[collector.collector_name] = default
            else:
                results[collector.collector_name] = outcome

        details: Optional[IssueDetails] = results[issue_collector.collector_name]
        prs = tuple(results[pr_collector.collector_name])
        momentum = results[momentum_collector.collector_name]
        forks = tuple(results[fork_collector.collector_name])
        workloads = results[workload_collector.collector_name]

        issue = details.issue if details else None
        api_comments = details.comments if details else ()

        claims: Tuple = ()
        if self.config.is_enabled("claims"):
            records = page.comments or api_comments
            claims = tuple(detect_claims(records, now, fallback_url=issue.html_url if issue else ""))

        difficulty = score_difficulty(issue, prs)
        verdict = explain_status(prs, claims, forks)
        stats = build_radar_stats(issue, momentum, prs, difficulty)
        timeline = build_activity_timeline(api_comments or page.comments, today=now.date())

        errors = tuple(
            f"{c.collector_name}: {c.error_message}"
            for c, _ in enabled
            if c.status is CollectorStatus.DEGRADED
        )

        logger.info(
            f"{ref}: {verdict.status.value} ({verdict.reason.value}), "
            f"difficulty {difficulty.score} {difficulty.level.value}, "
            f"{len(prs)} PRs, {len(claims)} claims, {len(forks)} forks"
            + (f", {len(errors)} degraded" if errors else "")
        )

        return RadarReport(
            ref=ref,
            status=verdict.status,
            status_reason=verdict.reason.value,
            headline=verdict.headline,
            difficulty=difficulty,
            stats=stats,
            timeline=tuple(timeline),
            issue=issue,
            prs=prs,
            claims=claims,
            forks=forks,
            momentum=momentum,
            workloads=workloads,
            errors=errors,
            generated_at=now,
        )
