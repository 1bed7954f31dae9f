import math
import logging
from typing import Dict, List, Sequence

from newsroom.models import Allocation, RepositoryCandidate, SectionBudget, UNKNOWN_LANGUAGE

logger = logging.getLogger(__name__)

DIVERSITY_POOL_SIZE = 15
MIN_PER_LANGUAGE = 2


def _language(candidate: RepositoryCandidate) -> str:
    return candidate.language or UNKNOWN_LANGUAGE


def max_per_language(scored: Sequence[RepositoryCandidate], promoted_slots: int) -> int:
    """
    Adaptive per-language cap for the promoted tiers.

    Only the top of the pool is inspected: a diverse top 15 keeps the cap at
    2, a pool dominated by one or two languages relaxes it so slots fill.
    """
    distinct = len({_language(c) for c in scored[:DIVERSITY_POOL_SIZE]})
    if distinct == 0:
        return MIN_PER_LANGUAGE
    return max(MIN_PER_LANGUAGE, math.ceil(promoted_slots / distinct))


def allocate(scored: Sequence[RepositoryCandidate], budget: SectionBudget) -> Allocation:
    """
    Split score-sorted candidates into lead, secondary and quick hits.

    Promotion walks the list once under the per-language cap. If the cap
    leaves promoted slots empty, they are backfilled from the overflow in
    score order, ignoring the cap. Overflow beyond the quick-hit budget is
    dropped.
    """
    if not scored:
        return Allocation()

    promoted_slots = 1 + budget.secondary
    cap = max_per_language(scored, promoted_slots)

    promoted: List[RepositoryCandidate] = []
    overflow: List[RepositoryCandidate] = []
    per_language: Dict[str, int] = {}

    for candidate in scored:
        lang = _language(candidate)
        if len(promoted) < promoted_slots and per_language.get(lang, 0) < cap:
            promoted.append(candidate)
            per_language[lang] = per_language.get(lang, 0) + 1
        else:
            overflow.append(candidate)

    if len(promoted) < promoted_slots:
        for candidate in overflow:
            if len(promoted) >= promoted_slots:
                break
            promoted.append(candidate)
        promoted_names = {c.full_name for c in promoted}
        overflow = [c for c in scored if c.full_name not in promoted_names]
        logger.debug(f"Backfilled promoted slots to {len(promoted)}/{promoted_slots}")

    return Allocation(
        lead=promoted[0] if promoted else None,
        secondary=promoted[1:],
        quick_hits=overflow[:budget.quick_hits],
    )
