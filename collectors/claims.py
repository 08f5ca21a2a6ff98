"""
Claim detection: comments where someone says they are taking the issue.

Works on plain comment records, whether scraped from the page or fetched
from the API. A claim older than 72 hours is stale (likely abandoned).
Results are ordered newest first; the status banner only looks at the
freshest non-stale claim.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from core.models import ClaimRecord, CommentRecord

logger = logging.getLogger(__name__)

# Ordered: the first phrase found is the one reported
CLAIM_KEYWORDS = (
    "i'm working on this",
    "i am working on this",
    "can i take this",
    "i'll take this",
    "i will take this",
    "working on it",
    "/assign",
    "taking this",
    "i can work on this",
    "let me work on this",
    "i'll fix this",
    "i will fix this",
    "i'll tackle this",
)


def match_claim_keyword(text: str) -> Optional[str]:
    lowered = text.lower()
    for keyword in CLAIM_KEYWORDS:
        if keyword in lowered:
            return keyword
    return None


def detect_claims(
    records: Iterable[CommentRecord],
    now: datetime,
    fallback_url: str = "",
) -> List[ClaimRecord]:
    """
    Find claim comments.

    Records without a claim phrase or without a timestamp are dropped.

    Args:
        records: Comment records in page order
        now: Evaluation instant used for age/staleness
        fallback_url: Link used when a record has no URL of its own

    Returns:
        Claims sorted by claimed_at, most recent first
    """
    claims: List[ClaimRecord] = []
    for record in records:
        keyword = match_claim_keyword(record.body)
        if keyword is None or record.created_at is None:
            continue
        claims.append(ClaimRecord(
            claimer=record.author or "Someone",
            comment_url=record.url or fallback_url,
            claimed_at=record.created_at,
            keyword=keyword,
            evaluated_at=now,
        ))

    claims.sort(key=lambda c: c.claimed_at, reverse=True)
    if claims:
        stale = sum(1 for c in claims if c.is_stale)
        logger.debug(f"Detected {len(claims)} claims ({stale} stale)")
    return claims


def freshest_claim(claims: Iterable[ClaimRecord]) -> Optional[ClaimRecord]:
    """The most recent non-stale claim, assuming newest-first order"""
    return next((c for c in claims if not c.is_stale), None)
