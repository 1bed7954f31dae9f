from dataclasses import dataclass, field
from typing import Dict, List, Optional
from datetime import datetime

UNKNOWN_LANGUAGE = "Unknown"


@dataclass
class Release:
    tag: str
    name: Optional[str] = None
    body: str = ""
    published_at: Optional[datetime] = None


@dataclass(frozen=True)
class RepositoryCandidate:
    full_name: str  # owner/repo, unique per fetch cycle
    name: str
    description: str
    url: str
    stars: int
    forks: int
    open_issues: int
    language: str
    created_at: Optional[datetime]
    pushed_at: Optional[datetime]
    topics: tuple = ()
    latest_release: Optional[Release] = None
    synthetic_timestamps: bool = False  # set for aggregator rows with made-up dates
    score: float = 0.0


@dataclass
class EnrichedRepo:
    name: str
    short_name: str
    description: str
    url: str
    stars: int
    language: str
    topics: List[str] = field(default_factory=list)
    forks: int = 0
    open_issues: int = 0
    created_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None
    readme_excerpt: str = ""
    release_notes: str = ""
    release_name: Optional[str] = None


@dataclass
class QuickHit:
    name: str
    short_name: str
    description: str
    url: str
    stars: int
    language: str
    topics: List[str] = field(default_factory=list)
    summary: str = ""

    @classmethod
    def from_candidate(cls, candidate: RepositoryCandidate) -> "QuickHit":
        return cls(
            name=candidate.full_name,
            short_name=candidate.name,
            description=candidate.description,
            url=candidate.url,
            stars=candidate.stars,
            language=candidate.language,
            topics=list(candidate.topics),
        )

    @classmethod
    def from_repo(cls, repo: EnrichedRepo) -> "QuickHit":
        """Demotes an enriched repo, using its description as the summary."""
        return cls(
            name=repo.name,
            short_name=repo.short_name,
            description=repo.description,
            url=repo.url,
            stars=repo.stars,
            language=repo.language,
            topics=list(repo.topics),
            summary=repo.description,
        )


@dataclass
class Article:
    headline: str
    subheadline: str
    body: str
    builders_take: str = ""
    is_fallback: bool = False
    repo: Optional[EnrichedRepo] = None


@dataclass
class SectionBudget:
    secondary: int
    quick_hits: int


@dataclass
class SectionQuery:
    topics: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)


@dataclass
class SectionConfig:
    id: str
    label: str
    budget: SectionBudget
    query: Optional[SectionQuery] = None

    @property
    def is_front_page(self) -> bool:
        return self.id == "frontPage"


@dataclass
class Allocation:
    lead: Optional[RepositoryCandidate] = None
    secondary: List[RepositoryCandidate] = field(default_factory=list)
    quick_hits: List[RepositoryCandidate] = field(default_factory=list)

    @property
    def promoted(self) -> List[RepositoryCandidate]:
        return ([self.lead] if self.lead else []) + self.secondary


@dataclass
class SectionSlate:
    """Ranked, enriched repositories for one section, before generation."""
    lead: Optional[EnrichedRepo] = None
    secondary: List[EnrichedRepo] = field(default_factory=list)
    quick_hits: List[QuickHit] = field(default_factory=list)


@dataclass
class SectionContent:
    lead: Optional[Article] = None
    secondary: List[Article] = field(default_factory=list)
    quick_hits: List[QuickHit] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.lead is None


@dataclass
class Edition:
    sections: Dict[str, SectionContent]
    tagline: str = ""

    def repo_names(self) -> List[str]:
        """Every repository mentioned anywhere in the edition, in section order."""
        names = []
        for section in self.sections.values():
            if section.lead and section.lead.repo:
                names.append(section.lead.repo.name)
            for article in section.secondary:
                if article.repo:
                    names.append(article.repo.name)
            for hit in section.quick_hits:
                names.append(hit.name)
        return names
