"""
Difficulty scoring: how hard is this issue likely to be?

Score starts at 50 and each rule below may adjust it and leave a signal
explaining why, in this fixed order:

1. Labels (beginner-friendly, high complexity, general enhancement/bug)
2. Hard and easy keywords in title + body
3. Body length
4. Discussion depth (comment count)
5. Prior PR attempts
6. Fenced code blocks

Rules are pure functions folded over an immutable accumulator, so the
score and the signal trail are identical for identical inputs.

Levels (0-100):
    <28 beginner, <50 easy-medium, <68 medium, <82 hard, else expert
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from core.models import (
    DifficultyAssessment,
    DifficultyLevel,
    DifficultySignal,
    IssueSnapshot,
    PullRequestRef,
    SignalPolarity,
)

logger = logging.getLogger(__name__)

BASELINE_SCORE = 50

# =============================================================================
# VOCABULARIES
# =============================================================================

HARD_LABELS = (
    "complexity: high", "difficulty: hard", "senior", "performance", "security",
    "architecture", "breaking change", "refactor",
)
MEDIUM_LABELS = ("difficulty: medium", "complexity: medium", "enhancement", "bug")
EASY_LABELS = (
    "good first issue", "good-first-issue", "beginner", "easy", "starter",
    "difficulty: easy", "help wanted",
)

HARD_KEYWORDS = (
    "race condition", "memory leak", "concurrency", "deadlock", "cryptograph",
    "algorithm", "optimization", "benchmark", "regression", "migration",
    "breaking", "deprecat", "vulnerability", "exploit", "segfault",
    "undefined behavior", "thread safe", "async", "refactor", "rewrite",
    "architecture",
)
EASY_KEYWORDS = (
    "typo", "spelling", "grammar", "documentation", "docs", "readme", "comment",
    "test", "lint", "format", "style", "rename", "missing link", "broken link",
    "update dependency", "bump version",
)

HARD_KEYWORD_WEIGHT, HARD_KEYWORD_CAP = 8, 32
EASY_KEYWORD_WEIGHT, EASY_KEYWORD_CAP = 7, 28

LEVEL_BREAKPOINTS: Tuple[Tuple[int, DifficultyLevel], ...] = (
    (28, DifficultyLevel.BEGINNER),
    (50, DifficultyLevel.EASY_MEDIUM),
    (68, DifficultyLevel.MEDIUM),
    (82, DifficultyLevel.HARD),
)


# =============================================================================
# RULES
# =============================================================================

@dataclass(frozen=True)
class DifficultyInput:
    """Everything the rules look at"""
    title: str
    body: str
    labels: Tuple[str, ...]  # lower-cased names
    comment_count: int
    prior_attempts: int

    @classmethod
    def build(cls, issue: IssueSnapshot, prior_prs: Sequence[PullRequestRef]) -> DifficultyInput:
        return cls(
            title=issue.title,
            body=issue.body,
            labels=tuple(issue.label_names),
            comment_count=issue.comment_count,
            prior_attempts=len(prior_prs),
        )

    @property
    def text(self) -> str:
        return f"{self.title} {self.body}".lower()


class Accumulator(NamedTuple):
    score: int
    signals: Tuple[DifficultySignal, ...]

    def add(self, polarity: SignalPolarity, text: str, delta: int) -> Accumulator:
        return Accumulator(
            self.score + delta,
            self.signals + (DifficultySignal(polarity, text, delta),),
        )


Rule = Callable[[Accumulator, DifficultyInput], Accumulator]


def easy_label_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    if any(label in EASY_LABELS for label in data.labels):
        return acc.add(SignalPolarity.EASY, "Labeled as beginner-friendly", -25)
    return acc


def hard_label_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    if any(hard in label for label in data.labels for hard in HARD_LABELS):
        return acc.add(SignalPolarity.HARD, "Label indicates high complexity", 30)
    return acc


def medium_label_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    if any(label in MEDIUM_LABELS for label in data.labels):
        return acc.add(SignalPolarity.MEDIUM, "General enhancement/bug label", 5)
    return acc


def matching_keywords(text: str, vocabulary: Sequence[str]) -> List[str]:
    return [keyword for keyword in vocabulary if keyword in text]


def hard_keyword_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    found = matching_keywords(data.text, HARD_KEYWORDS)
    if not found:
        return acc
    delta = min(len(found) * HARD_KEYWORD_WEIGHT, HARD_KEYWORD_CAP)
    return acc.add(SignalPolarity.HARD, f"Technical keywords: {', '.join(found[:3])}", delta)


def easy_keyword_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    found = matching_keywords(data.text, EASY_KEYWORDS)
    if not found:
        return acc
    delta = min(len(found) * EASY_KEYWORD_WEIGHT, EASY_KEYWORD_CAP)
    return acc.add(SignalPolarity.EASY, f"Beginner-friendly terms: {', '.join(found[:3])}", -delta)


def body_length_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    length = len(data.body)
    if length > 3000:
        return acc.add(SignalPolarity.HARD, "Very detailed issue body", 12)
    if length > 1000:
        return acc.add(SignalPolarity.MEDIUM, "Detailed description", 5)
    if length < 200:
        return acc.add(SignalPolarity.EASY, "Simple, short issue", -5)
    return acc


def discussion_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    count = data.comment_count
    if count > 20:
        return acc.add(SignalPolarity.HARD, f"Heavy discussion ({count} comments)", 15)
    if count > 8:
        return acc.add(SignalPolarity.MEDIUM, f"Active discussion ({count} comments)", 7)
    return acc


def prior_attempts_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    attempts = data.prior_attempts
    if attempts > 2:
        return acc.add(SignalPolarity.HARD, f"{attempts} prior PR attempts", 18)
    if attempts > 0:
        return acc.add(SignalPolarity.MEDIUM, "Previous PRs attempted", 8)
    return acc


def code_block_rule(acc: Accumulator, data: DifficultyInput) -> Accumulator:
    if data.body.count("```") > 3:
        return acc.add(SignalPolarity.HARD, "Multiple code examples", 10)
    return acc


RULES: Tuple[Rule, ...] = (
    easy_label_rule,
    hard_label_rule,
    medium_label_rule,
    hard_keyword_rule,
    easy_keyword_rule,
    body_length_rule,
    discussion_rule,
    prior_attempts_rule,
    code_block_rule,
)


# =============================================================================
# SCORING
# =============================================================================

def level_for(score: int) -> DifficultyLevel:
    for upper, level in LEVEL_BREAKPOINTS:
        if score < upper:
            return level
    return DifficultyLevel.EXPERT


def baseline_assessment() -> DifficultyAssessment:
    """Neutral assessment used when the issue could not be fetched"""
    return DifficultyAssessment(score=BASELINE_SCORE, level=level_for(BASELINE_SCORE))


def score_difficulty(
    issue: Optional[IssueSnapshot],
    prior_prs: Sequence[PullRequestRef] = (),
    rules: Sequence[Rule] = RULES,
) -> DifficultyAssessment:
    """
    Score an issue's difficulty.

    Args:
        issue: Issue snapshot (None = unknown, baseline returned)
        prior_prs: Pull requests already linked to the issue
        rules: Rule functions applied in order

    Returns:
        DifficultyAssessment with clamped score and ordered signals
    """
    if issue is None:
        return baseline_assessment()

    data = DifficultyInput.build(issue, prior_prs)
    result = reduce(lambda acc, rule: rule(acc, data), rules, Accumulator(BASELINE_SCORE, ()))
    score = max(0, min(100, result.score))

    logger.debug(f"Difficulty for #{issue.number}: {score} from {len(result.signals)} signals")
    return DifficultyAssessment(score=score, level=level_for(score), signals=result.signals)
