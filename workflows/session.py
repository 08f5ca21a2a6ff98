"""
Navigation session: one per open tab / page.

Each navigation starts a fresh evaluation. When the user moves to another
issue before the previous evaluation finishes, the older result is thrown
away instead of overwriting the newer one. In-flight requests are not
cancelled; their responses still land in the shared cache.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.models import IssueRef, PageContext, RadarReport
from workflows.pipeline import IssueRadarPipeline

logger = logging.getLogger(__name__)


class RadarSession:
    """
    Usage:
        session = RadarSession(pipeline)
        report = await session.navigate(IssueRef.parse("octo/repo#1"))
        if report is None:
            pass  # superseded by a later navigation
    """

    def __init__(self, pipeline: IssueRadarPipeline):
        self.pipeline = pipeline
        self.current_ref: Optional[IssueRef] = None
        self.current: Optional[RadarReport] = None
        self.sidebar_open = False
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def navigate(self, ref: IssueRef, page: Optional[PageContext] = None) -> Optional[RadarReport]:
        """
        Evaluate `ref` and publish the result unless a newer navigation began.

        Returns:
            The report, or None if this evaluation was superseded
        """
        self._generation += 1
        generation = self._generation
        self.current_ref = ref
        self.current = None
        self.sidebar_open = False

        report = await self.pipeline.evaluate(ref, page)

        if generation != self._generation:
            logger.info(f"Discarding superseded result for {ref} (generation {generation})")
            return None

        self.current = report
        return report

    def toggle_sidebar(self) -> bool:
        """Flip the analytics sidebar; only meaningful once a report exists."""
        if self.current is None:
            return False
        self.sidebar_open = not self.sidebar_open
        return self.sidebar_open
