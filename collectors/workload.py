"""
Contributor workload check: are the assignees already busy elsewhere?

For each assignee, count their open PRs across GitHub. More than 8 open
PRs marks the assignee as overloaded. A failed lookup for one assignee
yields a record without a count.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from collectors.base import BaseCollector
from core.models import WorkloadRecord

logger = logging.getLogger(__name__)


class WorkloadCollector(BaseCollector[Optional[Tuple[WorkloadRecord, ...]]]):
    """Returns None when the issue has no assignees or could not be fetched."""

    collector_name = "workload"

    async def _collect(self) -> Optional[Tuple[WorkloadRecord, ...]]:
        issue = await self.api.get_issue(self.ref)
        assignees = [a for a in (issue or {}).get("assignees") or [] if isinstance(a, dict)]
        if not assignees:
            return None

        records = await asyncio.gather(*(self._check_assignee(a) for a in assignees))
        overloaded = [r.login for r in records if r.overloaded]
        if overloaded:
            logger.info(f"Overloaded assignees on {self.ref}: {', '.join(overloaded)}")
        return tuple(records)

    async def _check_assignee(self, assignee: Dict[str, Any]) -> WorkloadRecord:
        login = assignee.get("login") or ""
        avatar_url = assignee.get("avatar_url") or ""
        try:
            count = await self.api.count_open_prs_by_author(login)
        except Exception as e:
            logger.debug(f"Workload lookup failed for {login}: {e}")
            return WorkloadRecord(login=login, avatar_url=avatar_url)
        return WorkloadRecord(login=login, avatar_url=avatar_url, open_pr_count=count)

    def _default(self) -> Optional[Tuple[WorkloadRecord, ...]]:
        return None
