"""
GitHub endpoints used by Issue Radar, routed through the response cache.

Every call is keyed by URL plus sorted query parameters, so two collectors
asking for the same issue during one evaluation share a single request.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from connectors.github_transport import GitHubTransport
from core.models import IssueRef
from utils.cache_gateway import CacheGateway, get_cache_gateway

logger = logging.getLogger(__name__)


def cache_key(url: str, params: Optional[Dict[str, Any]] = None) -> str:
    if not params:
        return url
    return f"{url}?{urlencode(sorted(params.items()))}"


class GitHubAPI:
    """
    Cached GitHub API facade.

    Usage:
        async with GitHubTransport(token=token) as transport:
            api = GitHubAPI(transport)
            issue = await api.get_issue(IssueRef.parse("octo/repo#12"))
    """

    def __init__(self, transport: GitHubTransport, cache: Optional[CacheGateway] = None):
        self.transport = transport
        self.cache = cache or get_cache_gateway()

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET through the cache; errors propagate and are not cached."""
        return await self.cache.fetch_cached(
            cache_key(url, params),
            lambda: self.transport.fetch(url, params=params),
        )

    async def get_issue(self, ref: IssueRef) -> Dict[str, Any]:
        return await self.get_json(f"/repos/{ref.owner}/{ref.repo}/issues/{ref.number}")

    async def get_issue_comments(self, ref: IssueRef) -> List[Dict[str, Any]]:
        data = await self.get_json(
            f"/repos/{ref.owner}/{ref.repo}/issues/{ref.number}/comments",
            {"per_page": 100},
        )
        return data if isinstance(data, list) else []

    async def search_open_prs(self, ref: IssueRef) -> List[Dict[str, Any]]:
        """Open PRs in the repo mentioning the issue number in title or body"""
        query = f"is:pr is:open repo:{ref.owner}/{ref.repo} {ref.number} in:title,body"
        data = await self.get_json("/search/issues", {"q": query, "per_page": 5})
        return (data or {}).get("items") or []

    async def list_forks(self, ref: IssueRef) -> List[Dict[str, Any]]:
        data = await self.get_json(
            f"/repos/{ref.owner}/{ref.repo}/forks",
            {"sort": "newest", "per_page": 10},
        )
        return data if isinstance(data, list) else []

    async def list_branches(self, full_name: str) -> List[Dict[str, Any]]:
        data = await self.get_json(f"/repos/{full_name}/branches", {"per_page": 20})
        return data if isinstance(data, list) else []

    async def count_open_prs_by_author(self, login: str) -> int:
        data = await self.get_json(
            "/search/issues",
            {"q": f"is:pr is:open author:{login}", "per_page": 1},
        )
        return int((data or {}).get("total_count") or 0)
