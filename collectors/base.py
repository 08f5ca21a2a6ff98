"""
Base Collector Class for Issue Radar

Provides common functionality for all remote-backed collectors:
- Shared cached GitHub API facade
- Soft failure: transport errors degrade to the collector's neutral default
- Per-run status and error message for diagnostics

All collectors should inherit from BaseCollector and implement:
- _collect(): Fetch remote data and build the result
- _default(): Neutral result returned when collection fails
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

import httpx

from connectors.github_api import GitHubAPI
from connectors.github_transport import GitHubRateLimitError, GitHubTransportError
from core.models import IssueRef
from utils.timestamps import utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollectorStatus(str, Enum):
    """Outcome of one collector run"""
    PENDING = "pending"
    SUCCESS = "success"
    DEGRADED = "degraded"  # failed, neutral default returned


class BaseCollector(ABC, Generic[T]):
    """
    Base class for Issue Radar collectors.

    Usage:
        class MyCollector(BaseCollector[List[Thing]]):
            collector_name = "things"

            async def _collect(self) -> List[Thing]:
                data = await self.api.get_json("/things")
                return [Thing(**d) for d in data]

            def _default(self) -> List[Thing]:
                return []

        things = await MyCollector(api, ref).run()
    """

    collector_name = "unknown"

    def __init__(self, api: GitHubAPI, ref: IssueRef, now: Optional[datetime] = None):
        """
        Args:
            api: Cached GitHub API facade
            ref: Issue being evaluated
            now: Evaluation instant (defaults to the current UTC time)
        """
        self.api = api
        self.ref = ref
        self.now = now or utcnow()
        self.status = CollectorStatus.PENDING
        self.error_message: Optional[str] = None

    @abstractmethod
    async def _collect(self) -> T:
        """Fetch and build the result. May raise transport errors."""

    @abstractmethod
    def _default(self) -> T:
        """Neutral result used when collection fails"""

    async def run(self) -> T:
        """
        Main entry point: collect, or degrade to the default on failure.

        Never raises for remote failures.
        """
        logger.debug(f"Starting {self.collector_name} collector for {self.ref}")
        try:
            result = await self._collect()
        except GitHubRateLimitError as e:
            self._degrade(e)
            logger.warning(f"{self.collector_name} rate limited for {self.ref}: {e}")
            return self._default()
        except (GitHubTransportError, httpx.HTTPError) as e:
            self._degrade(e)
            logger.warning(f"{self.collector_name} failed for {self.ref}: {e}")
            return self._default()
        except Exception as e:
            self._degrade(e)
            logger.exception(f"{self.collector_name} collector crashed for {self.ref}")
            return self._default()

        if self.status is CollectorStatus.PENDING:
            self.status = CollectorStatus.SUCCESS
        return result

    def _degrade(self, error: Exception) -> None:
        self.status = CollectorStatus.DEGRADED
        self.error_message = str(error) or error.__class__.__name__
