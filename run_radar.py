#!/usr/bin/env python3
"""
CLI interface for Issue Radar.

Evaluates one GitHub issue and prints its contribution status, difficulty,
momentum, PRs, claims and fork activity.

Examples:
  python run_radar.py octocat/hello-world#42
  python run_radar.py https://github.com/octocat/hello-world/issues/42 --json
  python run_radar.py octocat/hello-world#42 --no-forks --no-workload
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.models import IssueRef, RadarReport
from utils.timestamps import time_ago
from workflows.pipeline import FEATURES, IssueRadarPipeline, RadarConfig

logger = logging.getLogger("run_radar")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser"""
    parser = argparse.ArgumentParser(
        description="Issue Radar - contribution signals for a GitHub issue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment variables:
  GITHUB_TOKEN               - Personal access token (optional, 60 req/hr without)
  RADAR_FEATURE_<NAME>       - true/false per feature: PR, CLAIMS, MOMENTUM, FORKS, WORKLOAD
        """,
    )
    parser.add_argument("issue", help="owner/repo#number or issue URL")
    parser.add_argument("--token", help="GitHub token (overrides GITHUB_TOKEN)")
    parser.add_argument("--json", action="store_true", help="Output the full report as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    for feature in FEATURES:
        parser.add_argument(
            f"--no-{feature}",
            dest=f"no_{feature}",
            action="store_true",
            help=f"Disable the {feature} feature",
        )
    return parser


def build_config(args: argparse.Namespace) -> RadarConfig:
    config = RadarConfig.from_env()
    if args.token:
        config.github_token = args.token
        if config.token_warning:
            logger.warning(config.token_warning)
    for feature in FEATURES:
        if getattr(args, f"no_{feature}", False):
            config.features[feature] = False
    return config


def format_report(report: RadarReport) -> List[str]:
    """Human-readable summary lines"""
    now = report.generated_at
    difficulty = report.difficulty
    lines = [
        "=" * 60,
        f"ISSUE RADAR: {report.ref}",
        "=" * 60,
        f"Status: {report.status.value} ({report.status.color}) - {report.headline}",
        f"Difficulty: {difficulty.label} ({difficulty.score}/100) - "
        + ("Beginner OK" if difficulty.can_beginner else "Not for beginners"),
    ]
    for signal in difficulty.signals[:5]:
        lines.append(f"  {signal.delta:+d}  {signal.text}")

    if report.momentum:
        m = report.momentum
        lines.append(
            f"Momentum: {m.label.value} ({m.score}/100), updated {m.days_since_update}d ago, "
            f"{m.comment_count} comments"
        )

    if report.prs:
        lines.append(f"Pull requests ({len(report.prs)}):")
        for pr in report.prs:
            state = "Draft" if pr.is_draft else "Open"
            lines.append(f"  [{state}] #{pr.number} {pr.short_title}")

    if report.claims:
        lines.append("Claims:")
        for claim in report.claims[:3]:
            stale = "stale, " if claim.is_stale else ""
            lines.append(f"  @{claim.claimer} ({stale}{time_ago(claim.claimed_at, now)})")

    if report.forks:
        lines.append("Fork activity:")
        for fork in report.forks:
            lines.append(f"  {fork.owner}:{fork.branch_name} (pushed {time_ago(fork.pushed_at, now)})")

    if report.workloads:
        lines.append("Assignees:")
        for w in report.workloads:
            count = "?" if w.open_pr_count is None else str(w.open_pr_count)
            lines.append(f"  @{w.login}: {count} open PRs" + (" (overloaded)" if w.overloaded else ""))

    for error in report.errors:
        lines.append(f"Degraded: {error}")

    lines.append("=" * 60)
    return lines


async def run(args: argparse.Namespace) -> int:
    try:
        ref = IssueRef.parse(args.issue)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2

    config = build_config(args)
    logger.info(f"Using {config.rate_limit_hint}")

    async with IssueRadarPipeline(config) as pipeline:
        report = await pipeline.evaluate(ref)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print("\n".join(format_report(report)))
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
