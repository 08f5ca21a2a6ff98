"""
Pull request detection.

Two sources:
- Sidebar: PR links the page collaborator scraped from the "Development"
  section (richer context, listed first)
- Search: open PRs in the repo that mention the issue number

Identity is the PR number; on duplicates the sidebar entry wins.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Set

import httpx

from collectors.base import BaseCollector
from connectors.github_api import GitHubAPI
from connectors.github_transport import GitHubTransportError
from core.models import IssueRef, PullRequestRef

logger = logging.getLogger(__name__)


def dedupe_pull_requests(
    sidebar: Iterable[PullRequestRef],
    search: Iterable[PullRequestRef],
) -> List[PullRequestRef]:
    """
    Merge sidebar and search references into one ordered unique list.

    Sidebar entries come first in their original order, then search
    entries whose number was not already seen, in search order.
    """
    merged: List[PullRequestRef] = []
    seen: Set[int] = set()
    for pr in list(sidebar) + list(search):
        if pr.number in seen:
            continue
        seen.add(pr.number)
        merged.append(pr)
    return merged


class PullRequestCollector(BaseCollector[List[PullRequestRef]]):
    """
    Usage:
        prs = await PullRequestCollector(api, ref, sidebar_prs=page.sidebar_prs).run()
    """

    collector_name = "pull_requests"

    def __init__(
        self,
        api: GitHubAPI,
        ref: IssueRef,
        sidebar_prs: Sequence[PullRequestRef] = (),
        **kwargs,
    ):
        super().__init__(api, ref, **kwargs)
        self.sidebar_prs = list(sidebar_prs)

    async def _collect(self) -> List[PullRequestRef]:
        search_prs: List[PullRequestRef] = []
        try:
            items = await self.api.search_open_prs(self.ref)
            search_prs = [
                PullRequestRef.from_search_item(item)
                for item in items
                if isinstance(item, dict) and item.get("number")
            ]
        except (GitHubTransportError, httpx.HTTPError) as e:
            # Sidebar results still count
            self._degrade(e)
            logger.warning(f"PR search failed for {self.ref}: {e}")

        merged = dedupe_pull_requests(self.sidebar_prs, search_prs)
        logger.info(
            f"PRs for {self.ref}: {len(merged)} "
            f"({len(self.sidebar_prs)} sidebar, {len(search_prs)} search)"
        )
        return merged

    def _default(self) -> List[PullRequestRef]:
        return list(self.sidebar_prs)
