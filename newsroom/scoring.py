import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Container, Iterable, List, Optional

from newsroom.models import RepositoryCandidate

VELOCITY_WEIGHT = 0.35
RECENCY_WEIGHT = 0.25
RELEASE_WEIGHT = 0.15
ENGAGEMENT_WEIGHT = 0.10

HISTORY_PENALTY = 0.5
RECENCY_WINDOW_DAYS = 7
RELEASE_WINDOW_DAYS = 30
UNDATED_RELEASE_CREDIT = 0.5
ISSUE_WEIGHT = 0.3

SECONDS_PER_DAY = 86400.0


def _days_between(earlier: Optional[datetime], now: datetime) -> Optional[float]:
    if earlier is None:
        return None
    return (now - earlier).total_seconds() / SECONDS_PER_DAY


def velocity_score(candidate: RepositoryCandidate, now: datetime) -> float:
    age_days = _days_between(candidate.created_at, now)
    age_days = max(age_days if age_days is not None else 1.0, 1.0)
    raw = max(candidate.stars, 0) / age_days
    return min(math.log1p(raw) / 5, 1.0)


def recency_score(candidate: RepositoryCandidate, now: datetime) -> float:
    pushed_days = _days_between(candidate.pushed_at, now)
    if pushed_days is None:
        return 0.0
    return min(max(0.0, 1 - pushed_days / RECENCY_WINDOW_DAYS), 1.0)


def release_score(candidate: RepositoryCandidate, now: datetime) -> float:
    release = candidate.latest_release
    if release is None:
        return 0.0
    if release.published_at is None:
        return UNDATED_RELEASE_CREDIT
    age_days = _days_between(release.published_at, now)
    return min(max(0.0, 1 - age_days / RELEASE_WINDOW_DAYS), 1.0)


def engagement_score(candidate: RepositoryCandidate) -> float:
    if candidate.stars <= 0:
        return 0.0
    engagement = candidate.forks + candidate.open_issues * ISSUE_WEIGHT
    return min(engagement / candidate.stars, 1.0)


def score_repo(
    candidate: RepositoryCandidate,
    now: Optional[datetime] = None,
    history_penalty: Optional[Container[str]] = None,
) -> float:
    """
    Collapse a repository's raw signals into one comparable rank score.

    The result is a weighted sum of star velocity, push recency, release
    freshness and engagement. Candidates whose timestamps come from an
    aggregator get no velocity or recency credit. Names found in
    ``history_penalty`` lose a flat 0.5, and the score is not floored.
    """
    now = now or datetime.now(timezone.utc)

    if candidate.synthetic_timestamps:
        velocity = 0.0
        recency = 0.0
    else:
        velocity = velocity_score(candidate, now)
        recency = recency_score(candidate, now)

    score = (
        velocity * VELOCITY_WEIGHT
        + recency * RECENCY_WEIGHT
        + release_score(candidate, now) * RELEASE_WEIGHT
        + engagement_score(candidate) * ENGAGEMENT_WEIGHT
    )

    if history_penalty and candidate.full_name in history_penalty:
        score -= HISTORY_PENALTY

    return score


def score_candidates(
    candidates: Iterable[RepositoryCandidate],
    now: Optional[datetime] = None,
    history_penalty: Optional[Container[str]] = None,
) -> List[RepositoryCandidate]:
    """Score every candidate and sort descending; equal scores keep fetch order."""
    now = now or datetime.now(timezone.utc)
    scored = [
        replace(c, score=score_repo(c, now=now, history_penalty=history_penalty))
        for c in candidates
    ]
    scored.sort(key=lambda c: c.score, reverse=True)
    return scored
