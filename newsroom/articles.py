import asyncio
import logging
import re
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from newsroom.errors import BackendError
from newsroom.llm import TextBackend
from newsroom.models import (
    Article,
    EnrichedRepo,
    Edition,
    QuickHit,
    SectionConfig,
    SectionContent,
    SectionSlate,
)
from newsroom.prompts import (
    edition_tagline_prompt,
    lead_article_prompt,
    quick_hit_prompt,
    secondary_article_prompt,
)
from newsroom.sections import FRONT_PAGE, SECTION_ORDER, SECTIONS

logger = logging.getLogger(__name__)

PromptBuilder = Callable[[EnrichedRepo], str]

BACKEND_CONCURRENCY = 3
PARSE_RETRIES = 1
FALLBACK_HEADLINE_CHARS = 80
FRONT_PAGE_LEAD_TOKENS = 2000
LEAD_TOKENS = 1200
SECONDARY_TOKENS = 800
QUICK_HIT_TOKENS = 600
TAGLINE_TOKENS = 100
DEFAULT_TAGLINE = "All the code that's fit to ship."

# HEADLINE must start a line, otherwise it would match inside SUBHEADLINE.
# A value may sit on the line after its marker, but never another marker.
_NEXT_MARKER = r"(?!(?:HEADLINE|SUBHEADLINE|BODY|BUILDERS_TAKE):)"
_HEADLINE = re.compile(r"^[ \t]*HEADLINE:[ \t]*\n?[ \t]*" + _NEXT_MARKER + r"(\S.*)$", re.MULTILINE)
_SUBHEADLINE = re.compile(r"SUBHEADLINE:[ \t]*\n?[ \t]*" + _NEXT_MARKER + r"(\S.*)$", re.MULTILINE)
_BODY = re.compile(r"BODY:\s*")
_BUILDERS_TAKE = re.compile(r"BUILDERS_TAKE:")
_NUMBERED_LINE = re.compile(r"^\s*(\d+)\.\s*(.*)$")


def _last(pattern: re.Pattern, text: str) -> Optional[re.Match]:
    match = None
    for match in pattern.finditer(text):
        pass
    return match


def fallback_article(repo: Optional[EnrichedRepo], text: str = "") -> Article:
    """Deterministic article built from the repo's own description."""
    if repo is None:
        return Article(headline="Untitled", subheadline="", body=text, is_fallback=True)
    return Article(
        headline=f"{repo.short_name}: {repo.description}"[:FALLBACK_HEADLINE_CHARS],
        subheadline=repo.description,
        body=repo.description,
        builders_take="",
        is_fallback=True,
        repo=repo,
    )


def parse_article(text: str, repo: Optional[EnrichedRepo] = None) -> Article:
    """
    Pull HEADLINE / SUBHEADLINE / BODY / BUILDERS_TAKE out of model output.

    Verbose models may echo the format instructions before the real answer,
    so the last occurrence of every marker wins. The body runs from the last
    BODY: to the last BUILDERS_TAKE: (or the end of the text). Without a
    headline and a body the result is flagged ``is_fallback`` and missing
    fields are filled from the repo description.
    """
    text = text or ""
    headline_match = _last(_HEADLINE, text)
    subheadline_match = _last(_SUBHEADLINE, text)
    body_match = _last(_BODY, text)
    take_match = _last(_BUILDERS_TAKE, text)

    headline = headline_match.group(1).strip() if headline_match else ""
    subheadline = subheadline_match.group(1).strip() if subheadline_match else ""

    body = ""
    if body_match:
        body_end = take_match.start() if take_match else len(text)
        if body_match.end() < body_end:
            body = text[body_match.end():body_end].strip()

    builders_take = text[take_match.end():].strip() if take_match else ""

    if not headline or not body:
        # Keep whatever was located; synthesize the rest.
        fallback = fallback_article(repo, text)
        return Article(
            headline=headline or fallback.headline,
            subheadline=subheadline or fallback.subheadline,
            body=body or fallback.body,
            is_fallback=True,
            repo=repo,
        )

    return Article(
        headline=headline,
        subheadline=subheadline or (repo.description if repo else ""),
        body=body,
        builders_take=builders_take,
        is_fallback=False,
        repo=repo,
    )


def parse_quick_hits(text: str, hits: Sequence[QuickHit]) -> List[QuickHit]:
    """Match "{n}. summary" lines to hits by number; unmatched hits keep their description."""
    summaries: Dict[int, str] = {}
    for line in (text or "").splitlines():
        match = _NUMBERED_LINE.match(line)
        if match and match.group(2).strip():
            summaries.setdefault(int(match.group(1)), match.group(2).strip())

    annotated = []
    for i, hit in enumerate(hits, 1):
        summary = summaries.get(i) or hit.description
        annotated.append(replace(hit, summary=summary))
    return annotated


def route_articles(lead: Article, secondary: List[Article]):
    """
    Demote fallback secondaries and, when possible, replace a fallback lead
    with the first good secondary. Returns (lead, secondary, demoted).
    """
    good = []
    demoted = []
    for article in secondary:
        if article.is_fallback:
            demoted.append(QuickHit.from_repo(article.repo))
        else:
            good.append(article)

    if lead.is_fallback and good:
        logger.info(f"Promoting {good[0].repo.name} over fallback lead {lead.repo.name}")
        demoted.append(QuickHit.from_repo(lead.repo))
        lead = good.pop(0)

    return lead, good, demoted


class ArticleGenerator:
    """
    Writes articles for one edition run.

    Backend calls share one semaphore across every section of the run.
    Nothing here raises on backend or parse failures: those degrade into
    fallback articles, demotions and description-only quick hits.
    """

    def __init__(self, backend: TextBackend, concurrency: int = BACKEND_CONCURRENCY):
        self.backend = backend
        self._limit = asyncio.Semaphore(concurrency)

    async def _complete(self, prompt: str, max_tokens: int) -> str:
        async with self._limit:
            return await self.backend.complete(prompt, max_tokens)

    async def generate_article(self, repo: EnrichedRepo, prompt_builder: PromptBuilder, max_tokens: int) -> Article:
        prompt = prompt_builder(repo)
        for attempt in range(1 + PARSE_RETRIES):
            try:
                raw = await self._complete(prompt, max_tokens)
            except BackendError as e:
                logger.warning(f"Article generation failed for {repo.name}: {e}, using fallback")
                return fallback_article(repo)

            article = parse_article(raw, repo)
            if not article.is_fallback:
                return article
            if attempt < PARSE_RETRIES:
                logger.warning(f"Retrying article generation for {repo.name} after parse failure")

        logger.warning(f"Failed to parse structured output for {repo.name}, using fallback")
        return fallback_article(repo)

    async def summarize_quick_hits(self, hits: List[QuickHit]) -> List[QuickHit]:
        if not hits:
            return []
        try:
            raw = await self._complete(quick_hit_prompt(hits), QUICK_HIT_TOKENS)
        except BackendError as e:
            logger.warning(f"Quick hit summaries failed: {e}; using descriptions")
            raw = ""
        return parse_quick_hits(raw, hits)

    async def generate_section_content(self, slate: SectionSlate, config: SectionConfig) -> SectionContent:
        if slate.lead is None:
            return SectionContent(quick_hits=list(slate.quick_hits))

        lead_tokens = FRONT_PAGE_LEAD_TOKENS if config.is_front_page else LEAD_TOKENS
        # Gather everything before routing; completion order carries no meaning.
        lead, *secondary = await asyncio.gather(
            self.generate_article(slate.lead, lead_article_prompt, lead_tokens),
            *[self.generate_article(r, secondary_article_prompt, SECONDARY_TOKENS) for r in slate.secondary],
        )
        quick_hits = await self.summarize_quick_hits(list(slate.quick_hits))

        lead, secondary, demoted = route_articles(lead, secondary)
        return SectionContent(lead=lead, secondary=secondary, quick_hits=quick_hits + demoted)

    async def generate_tagline(self, front_page: Optional[SectionContent]) -> str:
        if front_page is None or front_page.is_empty:
            return DEFAULT_TAGLINE
        repos = [a.repo for a in [front_page.lead, *front_page.secondary] if a.repo]
        try:
            raw = await self._complete(edition_tagline_prompt(repos), TAGLINE_TOKENS)
        except BackendError as e:
            logger.warning(f"Tagline generation failed: {e}")
            return DEFAULT_TAGLINE
        lines = [line.strip().strip('"') for line in raw.splitlines() if line.strip()]
        return lines[-1] if lines else DEFAULT_TAGLINE

    async def generate_edition(
        self,
        slates: Dict[str, SectionSlate],
        order: Optional[List[str]] = None,
        sections: Optional[Dict[str, SectionConfig]] = None,
    ) -> Edition:
        order = order or SECTION_ORDER
        sections = sections or SECTIONS

        logger.info("Generating articles for all sections...")
        result: Dict[str, SectionContent] = {}
        for section_id in order:
            slate = slates.get(section_id)
            if slate is None:
                result[section_id] = SectionContent()
                continue
            config = sections[section_id]
            logger.info(f"Generating {config.label}...")
            result[section_id] = await self.generate_section_content(slate, config)

        tagline = await self.generate_tagline(result.get(FRONT_PAGE))
        total = sum(
            (1 if s.lead else 0) + len(s.secondary) + len(s.quick_hits) for s in result.values()
        )
        logger.info(f"Generated {total} total items across {len(result)} sections")
        return Edition(sections=result, tagline=tagline)
