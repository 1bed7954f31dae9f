import math
import random
from collections import Counter

import pytest

from newsroom.allocator import allocate, max_per_language
from newsroom.models import SectionBudget
from newsroom.scoring import score_candidates
from conftest import NOW

FRONT_PAGE_BUDGET = SectionBudget(secondary=6, quick_hits=10)


def names(repos):
    return [r.full_name for r in repos]


def ranked(make_candidate, specs):
    """Candidates already in score order, scores strictly descending."""
    total = len(specs)
    return [
        make_candidate(name, language=lang, score=float(total - i))
        for i, (name, lang) in enumerate(specs)
    ]


def test_end_to_end_example_caps_rust_at_two(make_candidate):
    candidates = [
        make_candidate("a/x", stars=5000, language="Rust"),
        make_candidate("a/y", stars=4800, language="Rust"),
        make_candidate("a/z", stars=4700, language="Rust"),
        make_candidate("b/p", stars=3000, language="Go"),
        make_candidate("b/q", stars=2900, language="Go"),
        make_candidate("c/r", stars=1000, language="Python"),
        make_candidate("c/s", stars=900, language="Python"),
        make_candidate("d/t", stars=500, language="JS"),
    ]
    result = allocate(score_candidates(candidates, now=NOW), FRONT_PAGE_BUDGET)

    promoted = names(result.promoted)
    assert [n for n in promoted if n.startswith("a/")] == ["a/x", "a/y"]
    assert result.lead.full_name == "a/x"
    assert names(result.secondary) == ["a/y", "b/p", "b/q", "c/r", "c/s", "d/t"]
    assert names(result.quick_hits) == ["a/z"]


def test_empty_input():
    result = allocate([], FRONT_PAGE_BUDGET)
    assert result.lead is None
    assert result.secondary == []
    assert result.quick_hits == []


def test_lead_only_budget(make_candidate):
    pool = ranked(make_candidate, [("a/1", "Go"), ("a/2", "Rust"), ("a/3", "C")])
    result = allocate(pool, SectionBudget(secondary=0, quick_hits=5))
    assert result.lead.full_name == "a/1"
    assert result.secondary == []
    assert names(result.quick_hits) == ["a/2", "a/3"]


def test_fewer_candidates_than_slots(make_candidate):
    pool = ranked(make_candidate, [("a/1", "Go"), ("a/2", "Rust"), ("a/3", "C")])
    result = allocate(pool, FRONT_PAGE_BUDGET)
    assert result.lead.full_name == "a/1"
    assert names(result.secondary) == ["a/2", "a/3"]
    assert result.quick_hits == []


def test_missing_language_counts_as_unknown(make_candidate):
    pool = ranked(make_candidate, [("a/1", ""), ("a/2", "Unknown"), ("a/3", ""), ("a/4", "Go"), ("a/5", "Rust"), ("a/6", "C")])
    result = allocate(pool, SectionBudget(secondary=2, quick_hits=5))
    # Four languages over three slots: cap stays at 2 and the third "Unknown" overflows.
    assert names(result.promoted) == ["a/1", "a/2", "a/4"]
    assert "a/3" in names(result.quick_hits)


def test_adaptive_cap_relaxes_for_single_language_pool(make_candidate):
    pool = ranked(make_candidate, [(f"r/{i}", "Rust") for i in range(10)])
    assert max_per_language(pool, 7) == 7
    result = allocate(pool, FRONT_PAGE_BUDGET)
    assert len(result.promoted) == 7
    assert names(result.quick_hits) == ["r/7", "r/8", "r/9"]


def test_adaptive_cap_only_looks_at_top_fifteen(make_candidate):
    specs = [(f"r/{i}", "Rust") for i in range(15)] + [("g/1", "Go"), ("c/1", "C"), ("z/1", "Zig")]
    pool = ranked(make_candidate, specs)
    assert max_per_language(pool, 7) == 7


def test_backfill_ignores_cap_when_pool_is_small(make_candidate):
    specs = [("r/1", "Rust"), ("r/2", "Rust"), ("r/3", "Rust"), ("r/4", "Rust"),
             ("g/1", "Go"), ("c/1", "C"), ("r/5", "Rust"), ("r/6", "Rust")]
    pool = ranked(make_candidate, specs)
    # Three languages over seven slots: cap = ceil(7 / 3) = 3.
    result = allocate(pool, FRONT_PAGE_BUDGET)
    assert len(result.promoted) == 7
    assert names(result.promoted) == ["r/1", "r/2", "r/3", "g/1", "c/1", "r/4", "r/5"]
    assert names(result.quick_hits) == ["r/6"]


def test_quick_hits_limited_to_budget(make_candidate):
    pool = ranked(make_candidate, [(f"a/{i}", f"L{i}") for i in range(20)])
    result = allocate(pool, SectionBudget(secondary=3, quick_hits=5))
    assert len(result.secondary) == 3
    assert names(result.quick_hits) == ["a/4", "a/5", "a/6", "a/7", "a/8"]


def test_secondary_never_exceeds_budget(make_candidate):
    pool = ranked(make_candidate, [(f"a/{i}", f"L{i % 3}") for i in range(30)])
    for secondary in range(0, 8):
        result = allocate(pool, SectionBudget(secondary=secondary, quick_hits=4))
        assert len(result.secondary) + 1 <= 1 + secondary


def test_promoted_outrank_quick_hits_without_cap_pressure(make_candidate):
    pool = ranked(make_candidate, [(f"a/{i}", f"L{i}") for i in range(12)])
    result = allocate(pool, FRONT_PAGE_BUDGET)
    lowest_promoted = min(r.score for r in result.promoted)
    assert all(q.score <= lowest_promoted for q in result.quick_hits)


@pytest.mark.parametrize("seed", range(20))
def test_diversity_cap_holds_for_diverse_pools(make_candidate, seed):
    rng = random.Random(seed)
    languages = ["Rust", "Go", "Python", "TypeScript", "C", "Zig"][: rng.randint(4, 6)]
    specs = []
    for lang in languages:
        for i in range(rng.randint(2, 6)):
            specs.append((f"{lang}/{i}", lang))
    rng.shuffle(specs)
    pool = ranked(make_candidate, specs)

    result = allocate(pool, FRONT_PAGE_BUDGET)

    distinct = len({r.language for r in pool[:15]})
    cap = max(2, math.ceil(7 / distinct))
    counts = Counter(r.language for r in result.promoted)
    assert len(result.promoted) == 7
    assert max(counts.values()) <= cap
