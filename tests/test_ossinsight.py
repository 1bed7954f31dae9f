import asyncio

import httpx
import pytest
from tenacity import wait_none

from newsroom.http_client import HTTPClient
from newsroom.scoring import score_repo
from newsroom.orchestrator import SectionFetcher
from sources.github import GitHubSource
from sources.ossinsight import OSSInsightSource
from conftest import NOW


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(HTTPClient.fetch_json.retry, "wait", wait_none())


def fetch(handler):
    async def go():
        async with HTTPClient(accept="application/json", transport=httpx.MockTransport(handler)) as client:
            return await OSSInsightSource(client).fetch_trending()
    return asyncio.run(go())


def test_rows_become_synthetic_candidates():
    def handler(request):
        assert request.url.params["period"] == "past_week"
        return httpx.Response(200, json={"data": {"rows": [
            {"repo_name": "hot/thing", "description": "Hot", "stars": "4200", "forks": "300", "primary_language": "Zig"},
            {"repo_name": "", "stars": "1"},
            {"repo_name": "quiet/one", "stars": None, "forks": None, "primary_language": None},
        ]}})

    repos = fetch(handler)

    assert [r.full_name for r in repos] == ["hot/thing", "quiet/one"]
    hot = repos[0]
    assert hot.stars == 4200
    assert hot.forks == 300
    assert hot.language == "Zig"
    assert hot.url == "https://github.com/hot/thing"
    assert hot.synthetic_timestamps is True
    assert hot.created_at == hot.pushed_at
    assert repos[1].language == "Unknown"
    assert repos[1].stars == 0


def test_synthetic_rows_only_score_on_engagement():
    def handler(request):
        return httpx.Response(200, json={"data": {"rows": [
            {"repo_name": "hot/thing", "stars": "1000", "forks": "100"},
        ]}})

    (repo,) = fetch(handler)
    assert score_repo(repo) == pytest.approx(0.10 * 0.1)


def test_failure_returns_empty_list():
    def handler(request):
        return httpx.Response(500)

    assert fetch(handler) == []


def test_unexpected_shape_returns_empty_list():
    def handler(request):
        return httpx.Response(200, json={"rows": []})

    assert fetch(handler) == []


def test_list_shaped_payload_returns_empty_list():
    def handler(request):
        return httpx.Response(200, json=[{"error": "rate limited"}])

    assert fetch(handler) == []


def test_malformed_rows_are_skipped():
    def handler(request):
        return httpx.Response(200, json={"data": {"rows": [
            {"repo_name": "bad/stars", "stars": "n/a"},
            "not a row",
            {"repo_name": "good/one", "stars": "12", "forks": "3"},
        ]}})

    repos = fetch(handler)
    assert [r.full_name for r in repos] == ["good/one"]
    assert repos[0].stars == 12


def test_malformed_trending_payload_does_not_sink_front_page():
    def handler(request):
        if request.url.host == "api.ossinsight.io":
            return httpx.Response(200, json={"data": {"rows": [{"repo_name": "a/b", "stars": "n/a"}]}})
        if request.url.path.startswith("/repos/"):
            return httpx.Response(404)
        return httpx.Response(200, json={"items": [{
            "full_name": "octo/widget",
            "stargazers_count": 900,
            "language": "Rust",
            "created_at": "2026-10-15T00:00:00Z",
            "pushed_at": "2026-10-16T00:00:00Z",
        }]})

    async def go():
        transport = httpx.MockTransport(handler)
        async with HTTPClient(transport=transport) as github_http, HTTPClient(transport=transport) as trending_http:
            fetcher = SectionFetcher(GitHubSource(github_http), trending=OSSInsightSource(trending_http), now=NOW)
            return await fetcher.fetch_all_sections(order=["frontPage"])

    slates = asyncio.run(go())
    assert slates["frontPage"].lead.name == "octo/widget"
