"""
Issue details collector: the issue itself plus its comment thread.

Momentum, workload and the difficulty scorer all read the same issue
payload; the response cache makes those reads share one request.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from collectors.base import BaseCollector
from connectors.github_api import GitHubAPI
from core.models import CommentRecord, IssueRef, IssueSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssueDetails:
    issue: IssueSnapshot
    comments: Tuple[CommentRecord, ...] = ()


async def fetch_issue_details(api: GitHubAPI, ref: IssueRef) -> IssueDetails:
    """Fetch issue and comments concurrently. Raises on transport failure."""
    issue_data, comment_data = await asyncio.gather(
        api.get_issue(ref),
        api.get_issue_comments(ref),
    )
    issue = IssueSnapshot.from_api(ref, issue_data or {})
    comments = tuple(
        CommentRecord.from_api(item) for item in comment_data if isinstance(item, dict)
    )
    return IssueDetails(issue=issue, comments=comments)


class IssueDetailsCollector(BaseCollector[Optional[IssueDetails]]):
    collector_name = "issue"

    async def _collect(self) -> Optional[IssueDetails]:
        details = await fetch_issue_details(self.api, self.ref)
        logger.info(
            f"Fetched {self.ref}: {details.issue.comment_count} comments, "
            f"{len(details.issue.labels)} labels"
        )
        return details

    def _default(self) -> Optional[IssueDetails]:
        return None
