import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Container, Dict, Iterable, List, Optional, Set

from newsroom.allocator import allocate
from newsroom.errors import NoFrontPageLeadError, SourceError
from newsroom.models import (
    EnrichedRepo,
    QuickHit,
    RepositoryCandidate,
    SectionConfig,
    SectionSlate,
)
from newsroom.scoring import score_candidates
from newsroom.sections import FRONT_PAGE, SECTION_ORDER, SECTIONS
from sources.base import RepositorySource, TrendingSource

logger = logging.getLogger(__name__)

MAX_TOPIC_QUERIES = 3
QUERY_CONCURRENCY = 3
ENRICH_CONCURRENCY = 5
RELEASE_POOL_SIZE = 15
README_EXCERPT_CHARS = 2000
RELEASE_NOTES_CHARS = 1500


def days_ago(days: int, now: Optional[datetime] = None) -> str:
    """ISO date (YYYY-MM-DD) ``days`` before ``now``, as used in search qualifiers."""
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(days=days)).date().isoformat()


def dedupe(candidates: Iterable[RepositoryCandidate]) -> List[RepositoryCandidate]:
    """First occurrence of each full name wins; order is preserved."""
    seen: Set[str] = set()
    unique = []
    for candidate in candidates:
        if candidate.full_name not in seen:
            seen.add(candidate.full_name)
            unique.append(candidate)
    return unique


def enrich(candidate: RepositoryCandidate, readme: Optional[str], release=None) -> EnrichedRepo:
    release = release or candidate.latest_release
    return EnrichedRepo(
        name=candidate.full_name,
        short_name=candidate.name,
        description=candidate.description,
        url=candidate.url,
        stars=candidate.stars,
        language=candidate.language,
        topics=list(candidate.topics),
        forks=candidate.forks,
        open_issues=candidate.open_issues,
        created_at=candidate.created_at,
        pushed_at=candidate.pushed_at,
        readme_excerpt=(readme or "")[:README_EXCERPT_CHARS],
        release_notes=(release.body if release else "")[:RELEASE_NOTES_CHARS],
        release_name=(release.tag or release.name) if release else None,
    )


class SectionFetcher:
    """
    Turns section queries into ranked, enriched slates.

    One fetcher serves one edition run. ``claimed_names`` belongs to the
    caller and is only appended to: every section adds its lead and
    secondary names so later sections cannot headline them again.
    """

    def __init__(
        self,
        source: RepositorySource,
        trending: Optional[TrendingSource] = None,
        history_penalty: Optional[Container[str]] = None,
        now: Optional[datetime] = None,
    ):
        self.source = source
        self.trending = trending
        self.history_penalty = history_penalty or frozenset()
        self.now = now
        self._enrich_limit = asyncio.Semaphore(ENRICH_CONCURRENCY)

    def _now(self) -> datetime:
        return self.now or datetime.now(timezone.utc)

    async def _search(self, query: str, sort: str, per_page: int, limit: asyncio.Semaphore) -> List[RepositoryCandidate]:
        async with limit:
            try:
                return await self.source.search(query, sort=sort, per_page=per_page)
            except SourceError as e:
                logger.warning(f"Query '{query}' failed, contributing no results: {e}")
                return []

    async def fetch_section_candidates(self, config: SectionConfig) -> List[RepositoryCandidate]:
        """Runs the section's topic and language queries, merged and deduplicated."""
        query = config.query
        if query is None:
            return []

        pushed_since = days_ago(3, self._now())
        queries = [
            f"topic:{topic} stars:>30 pushed:>{pushed_since}"
            for topic in query.topics[:MAX_TOPIC_QUERIES]
        ]
        queries += [
            f'language:"{lang}" stars:>100 pushed:>{pushed_since}'
            for lang in query.languages
        ]

        limit = asyncio.Semaphore(QUERY_CONCURRENCY)
        results = await asyncio.gather(*[self._search(q, "stars", 15, limit) for q in queries])
        return dedupe(repo for result in results for repo in result)

    async def _enrich(self, candidate: RepositoryCandidate) -> EnrichedRepo:
        async with self._enrich_limit:
            readme, release = await asyncio.gather(
                self._fetch_readme(candidate.full_name),
                self._fetch_release(candidate),
            )
        return enrich(candidate, readme, release)

    async def _fetch_readme(self, full_name: str) -> Optional[str]:
        try:
            return await self.source.fetch_readme(full_name)
        except SourceError as e:
            logger.warning(f"No readme for {full_name}: {e}")
            return None

    async def _fetch_release(self, candidate: RepositoryCandidate):
        if candidate.latest_release is not None:
            return candidate.latest_release
        try:
            return await self.source.fetch_latest_release(candidate.full_name)
        except SourceError as e:
            logger.warning(f"No release for {candidate.full_name}: {e}")
            return None

    async def _build_slate(
        self,
        config: SectionConfig,
        scored: List[RepositoryCandidate],
        claimed_names: Set[str],
    ) -> SectionSlate:
        allocation = allocate(scored, config.budget)

        # Quick hits may repeat across sections; headliners may not.
        for candidate in allocation.promoted:
            claimed_names.add(candidate.full_name)

        quick_hits = [QuickHit.from_candidate(c) for c in allocation.quick_hits]
        if allocation.lead is None:
            return SectionSlate(quick_hits=quick_hits)

        logger.info(
            f"[{config.label}] Lead: {allocation.lead.full_name}, "
            f"Secondary: {len(allocation.secondary)}, Quick hits: {len(quick_hits)}"
        )
        enriched = await asyncio.gather(*[self._enrich(c) for c in allocation.promoted])
        return SectionSlate(lead=enriched[0], secondary=list(enriched[1:]), quick_hits=quick_hits)

    async def fetch_and_rank(self, config: SectionConfig, claimed_names: Set[str]) -> SectionSlate:
        """Fetch, filter out claimed names, score, allocate, claim and enrich one topical section."""
        candidates = await self.fetch_section_candidates(config)
        available = [c for c in candidates if c.full_name not in claimed_names]
        if not available:
            logger.info(f"[{config.label}] No unclaimed candidates ({len(candidates)} fetched)")
            return SectionSlate()

        scored = score_candidates(available, now=self._now(), history_penalty=self.history_penalty)
        return await self._build_slate(config, scored, claimed_names)

    async def _attach_release(self, candidate: RepositoryCandidate) -> RepositoryCandidate:
        async with self._enrich_limit:
            release = await self._fetch_release(candidate)
        return replace(candidate, latest_release=release)

    async def fetch_front_page(self, config: SectionConfig, claimed_names: Set[str]) -> SectionSlate:
        """
        Broad new-and-active searches plus the trending aggregator.

        Everything is pre-scored, the top 15 are re-scored with their latest
        release, and the lead and secondaries seed ``claimed_names``.
        """
        now = self._now()
        limit = asyncio.Semaphore(QUERY_CONCURRENCY)
        new_repos, active_repos, trending = await asyncio.gather(
            self._search(f"created:>{days_ago(7, now)} stars:>50", "stars", 30, limit),
            self._search(f"stars:>1000 pushed:>{days_ago(3, now)}", "updated", 30, limit),
            self._fetch_trending(),
        )
        candidates = dedupe(new_repos + active_repos + trending)
        logger.info(f"Found {len(candidates)} unique front page candidates")

        candidates = [c for c in candidates if c.full_name not in claimed_names]
        pre_scored = score_candidates(candidates, now=now, history_penalty=self.history_penalty)

        # Releases only add score, so the re-sorted head stays ahead of the tail.
        head = await asyncio.gather(*[self._attach_release(c) for c in pre_scored[:RELEASE_POOL_SIZE]])
        scored = score_candidates(head, now=now, history_penalty=self.history_penalty)
        scored += pre_scored[RELEASE_POOL_SIZE:]

        return await self._build_slate(config, scored, claimed_names)

    async def _fetch_trending(self) -> List[RepositoryCandidate]:
        if self.trending is None:
            return []
        return await self.trending.fetch_trending()

    async def fetch_all_sections(
        self,
        order: Optional[List[str]] = None,
        sections: Optional[Dict[str, SectionConfig]] = None,
    ) -> Dict[str, SectionSlate]:
        """
        Fetch every section sequentially in declared order.

        The front page runs first and must produce a lead; otherwise
        NoFrontPageLeadError is raised. Topical sections may come back empty.
        """
        order = order or SECTION_ORDER
        sections = sections or SECTIONS
        claimed_names: Set[str] = set()
        slates: Dict[str, SectionSlate] = {}

        for section_id in order:
            config = sections[section_id]
            logger.info(f"Fetching section: {config.label}...")
            if config.is_front_page:
                slates[section_id] = await self.fetch_front_page(config, claimed_names)
                if slates[section_id].lead is None:
                    raise NoFrontPageLeadError("No repos found for the front page; check the GitHub token and network.")
            elif config.query is not None:
                slates[section_id] = await self.fetch_and_rank(config, claimed_names)

        return slates
