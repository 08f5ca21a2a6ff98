"""
Contribution status: can someone start on this issue right now?

Strict priority cascade, first match wins:
1. Any linked/open PR         -> active-pr (red)
2. Any fresh claim            -> claimed (yellow)
3. Any stale claim or fork    -> claimed (yellow)
4. Otherwise                  -> clear (green)

Recomputed from scratch on every evaluation; nothing is remembered
between issues.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from collectors.claims import freshest_claim
from core.models import ClaimRecord, ContributionStatus, ForkMatch, PullRequestRef


class StatusReason(str, Enum):
    """Which rule of the cascade decided the status"""
    OPEN_PR = "open_pr"
    FRESH_CLAIM = "fresh_claim"
    STALE_CLAIM = "stale_claim"
    FORK_ACTIVITY = "fork_activity"
    NOTHING_FOUND = "nothing_found"


@dataclass(frozen=True)
class StatusVerdict:
    status: ContributionStatus
    reason: StatusReason
    headline_claim: Optional[ClaimRecord] = None

    @property
    def headline(self) -> str:
        if self.reason is StatusReason.OPEN_PR:
            return "Someone is already working on this issue"
        if self.reason is StatusReason.FRESH_CLAIM and self.headline_claim:
            return f"{self.headline_claim.claimer} recently claimed this"
        if self.reason is StatusReason.STALE_CLAIM:
            return "Possible stale claim detected"
        if self.reason is StatusReason.FORK_ACTIVITY:
            return "Recent fork activity may target this issue"
        return "Clear to Contribute"


def explain_status(
    prs: Sequence[PullRequestRef],
    claims: Sequence[ClaimRecord],
    forks: Sequence[ForkMatch],
) -> StatusVerdict:
    """
    Resolve the status and report which rule fired.

    Claims must be ordered newest first (as detect_claims returns them).
    """
    if prs:
        return StatusVerdict(ContributionStatus.ACTIVE_PR, StatusReason.OPEN_PR)

    fresh = freshest_claim(claims)
    if fresh is not None:
        return StatusVerdict(ContributionStatus.CLAIMED, StatusReason.FRESH_CLAIM, fresh)

    # Stale claims and fork activity share an outcome even though they mean
    # different things (abandoned claim vs silent competing work).
    if any(claim.is_stale for claim in claims):
        return StatusVerdict(ContributionStatus.CLAIMED, StatusReason.STALE_CLAIM)
    if forks:
        return StatusVerdict(ContributionStatus.CLAIMED, StatusReason.FORK_ACTIVITY)

    return StatusVerdict(ContributionStatus.CLEAR, StatusReason.NOTHING_FOUND)


def resolve_status(
    prs: Sequence[PullRequestRef],
    claims: Sequence[ClaimRecord],
    forks: Sequence[ForkMatch],
) -> ContributionStatus:
    return explain_status(prs, claims, forks).status
