"""
Fork activity scanner: silent competing work on the issue.

Strategy:
1. List the newest forks of the repository
2. Keep forks pushed in the last 30 days that were touched after forking
   (push time differs from creation time)
3. Scan branches of the 5 most recently pushed of those
4. Report a fork when a branch name contains the issue number, "fix" or
   "feature"

A failed branch lookup only drops that fork.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from collectors.base import BaseCollector
from core.models import ForkMatch
from utils.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

ACTIVE_FORK_DAYS = 30
MAX_FORKS_SCANNED = 5
BRANCH_HINTS = ("fix", "feature")


@dataclass(frozen=True)
class ForkInfo:
    """The parts of a /forks entry the scanner needs"""
    full_name: str
    html_url: str
    owner: str
    pushed_at: Optional[datetime]
    created_at: Optional[datetime]

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> ForkInfo:
        owner = payload.get("owner") or {}
        return cls(
            full_name=payload.get("full_name") or "",
            html_url=payload.get("html_url") or "",
            owner=owner.get("login") or "",
            pushed_at=parse_timestamp(payload.get("pushed_at")),
            created_at=parse_timestamp(payload.get("created_at")),
        )


def select_candidate_forks(
    forks: Iterable[ForkInfo],
    now: datetime,
    limit: int = MAX_FORKS_SCANNED,
) -> List[ForkInfo]:
    """
    Recently pushed, touched-after-forking forks, most recent push first.

    Args:
        forks: Forks of the repository
        now: Evaluation instant
        limit: Maximum number of forks returned

    Returns:
        At most `limit` forks
    """
    cutoff = now - timedelta(days=ACTIVE_FORK_DAYS)
    active = [
        fork for fork in forks
        if fork.pushed_at is not None
        and fork.pushed_at > cutoff
        and fork.pushed_at != fork.created_at
    ]
    active.sort(key=lambda fork: fork.pushed_at, reverse=True)
    return active[:limit]


def match_branch(branch_names: Sequence[str], issue_number: int) -> Optional[str]:
    """First branch whose name mentions the issue number, "fix" or "feature"."""
    number = str(issue_number)
    for name in branch_names:
        lowered = name.lower()
        if number in name or any(hint in lowered for hint in BRANCH_HINTS):
            return name
    return None


class ForkActivityCollector(BaseCollector[List[ForkMatch]]):
    collector_name = "forks"

    async def _collect(self) -> List[ForkMatch]:
        payload = await self.api.list_forks(self.ref)
        forks = [ForkInfo.from_api(item) for item in payload if isinstance(item, dict)]
        candidates = select_candidate_forks(forks, self.now)
        logger.debug(f"{len(candidates)}/{len(forks)} forks of {self.ref.slug} are active")

        matches = await asyncio.gather(*(self._scan_fork(fork) for fork in candidates))
        found = [match for match in matches if match is not None]
        if found:
            logger.info(f"Found {len(found)} forks with matching branches for {self.ref}")
        return found

    async def _scan_fork(self, fork: ForkInfo) -> Optional[ForkMatch]:
        try:
            branches = await self.api.list_branches(fork.full_name)
        except Exception as e:
            logger.debug(f"Branch lookup failed for {fork.full_name}: {e}")
            return None

        names = [b.get("name") or "" for b in branches if isinstance(b, dict)]
        branch = match_branch(names, self.ref.number)
        if branch is None:
            return None
        return ForkMatch(
            fork_url=fork.html_url,
            owner=fork.owner,
            branch_name=branch,
            pushed_at=fork.pushed_at,
        )

    def _default(self) -> List[ForkMatch]:
        return []
