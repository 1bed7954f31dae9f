from datetime import datetime, timedelta, timezone

import pytest

from newsroom.errors import BackendError
from newsroom.llm import TextBackend
from newsroom.models import EnrichedRepo, QuickHit, Release, RepositoryCandidate

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def article_text(headline, body="Body text.", take="Try it."):
    return f"HEADLINE: {headline}\nSUBHEADLINE: Sub for {headline}\nBODY: {body}\nBUILDERS_TAKE: {take}"


class ScriptedBackend(TextBackend):
    """Answers prompts with ``reply(prompt)``; records every prompt it sees."""

    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    async def complete(self, prompt, max_tokens):
        self.prompts.append(prompt)
        result = self.reply(prompt)
        if isinstance(result, Exception):
            raise result
        return result


class FailingBackend(TextBackend):
    def __init__(self):
        self.calls = 0

    async def complete(self, prompt, max_tokens):
        self.calls += 1
        raise BackendError("backend down")


@pytest.fixture
def make_candidate():
    def _make(
        full_name,
        stars=100,
        language="Python",
        forks=0,
        open_issues=0,
        created_days_ago=30,
        pushed_days_ago=0,
        release=None,
        synthetic=False,
        score=0.0,
        description=None,
    ):
        return RepositoryCandidate(
            full_name=full_name,
            name=full_name.split("/")[-1],
            description=description if description is not None else f"{full_name} does things",
            url=f"https://github.com/{full_name}",
            stars=stars,
            forks=forks,
            open_issues=open_issues,
            language=language,
            created_at=NOW - timedelta(days=created_days_ago),
            pushed_at=NOW - timedelta(days=pushed_days_ago),
            latest_release=release,
            synthetic_timestamps=synthetic,
            score=score,
        )
    return _make


@pytest.fixture
def make_release():
    def _make(days_ago=None, tag="v1.0.0", body="Release notes"):
        published = NOW - timedelta(days=days_ago) if days_ago is not None else None
        return Release(tag=tag, name=tag, body=body, published_at=published)
    return _make


@pytest.fixture
def make_repo():
    def _make(name, description=None, language="Python", stars=1000):
        return EnrichedRepo(
            name=name,
            short_name=name.split("/")[-1],
            description=description if description is not None else f"{name} description",
            url=f"https://github.com/{name}",
            stars=stars,
            language=language,
        )
    return _make


@pytest.fixture
def make_quick_hit():
    def _make(name, description=None):
        return QuickHit(
            name=name,
            short_name=name.split("/")[-1],
            description=description if description is not None else f"{name} description",
            url=f"https://github.com/{name}",
            stars=10,
            language="Go",
        )
    return _make
