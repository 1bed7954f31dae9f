import base64
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from bs4 import BeautifulSoup

from newsroom.errors import SourceError
from newsroom.models import Release, RepositoryCandidate, UNKNOWN_LANGUAGE
from sources.base import RepositorySource

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Could not parse timestamp: {value}")
        return None


def parse_repository(item: Dict[str, Any]) -> RepositoryCandidate:
    """Maps one search API item onto a candidate."""
    full_name = item["full_name"]
    return RepositoryCandidate(
        full_name=full_name,
        name=item.get("name") or full_name.split("/")[-1],
        description=item.get("description") or "",
        url=item.get("html_url") or f"https://github.com/{full_name}",
        stars=item.get("stargazers_count") or 0,
        forks=item.get("forks_count") or 0,
        open_issues=item.get("open_issues_count") or 0,
        language=item.get("language") or UNKNOWN_LANGUAGE,
        topics=tuple(item.get("topics") or ()),
        created_at=parse_timestamp(item.get("created_at")),
        pushed_at=parse_timestamp(item.get("pushed_at")),
    )


def parse_release(data: Dict[str, Any]) -> Release:
    return Release(
        tag=data.get("tag_name") or data.get("name") or "",
        name=data.get("name"),
        body=data.get("body") or "",
        published_at=parse_timestamp(data.get("published_at") or data.get("created_at")),
    )


def clean_readme(markdown: str) -> str:
    """Strip badges and image lines, and reduce inline HTML blocks to their text."""
    lines = []
    for line in markdown.splitlines():
        stripped = line.strip()
        if stripped.startswith("![") or "shields.io" in stripped:
            continue
        if stripped.startswith("<") and ">" in stripped:
            text = BeautifulSoup(stripped, "lxml").get_text(" ", strip=True)
            if text:
                lines.append(text)
            continue
        lines.append(line.rstrip())
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


class GitHubSource(RepositorySource):
    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, missing_ok: bool = False):
        try:
            return await self.http_client.fetch_json(f"{GITHUB_API}{path}", params=params)
        except httpx.HTTPStatusError as e:
            if missing_ok and e.response.status_code == 404:
                return None
            raise SourceError(f"GitHub API {e.response.status_code} for {path}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise SourceError(f"GitHub request for {path} failed: {e}") from e

    async def search(self, query: str, sort: str = "stars", per_page: int = 15) -> List[RepositoryCandidate]:
        data = await self._get(
            "/search/repositories",
            params={"q": query, "sort": sort, "order": "desc", "per_page": per_page},
        )
        repos = []
        for item in data.get("items") or []:
            try:
                repos.append(parse_repository(item))
            except KeyError as e:
                logger.warning(f"Skipping malformed search item (missing {e})")
        logger.info(f"Search '{query}' returned {len(repos)} repos")
        return repos

    async def fetch_readme(self, full_name: str) -> Optional[str]:
        data = await self._get(f"/repos/{full_name}/readme", missing_ok=True)
        if not data or not data.get("content"):
            return None
        raw = base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        return clean_readme(raw)

    async def fetch_latest_release(self, full_name: str) -> Optional[Release]:
        data = await self._get(f"/repos/{full_name}/releases/latest", missing_ok=True)
        if not data:
            return None
        return parse_release(data)
