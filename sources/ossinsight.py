import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from newsroom.models import RepositoryCandidate, UNKNOWN_LANGUAGE
from sources.base import TrendingSource

logger = logging.getLogger(__name__)


def parse_trending_row(row: Dict[str, Any], now: datetime) -> Optional[RepositoryCandidate]:
    full_name = row.get("repo_name")
    if not full_name:
        return None
    return RepositoryCandidate(
        full_name=full_name,
        name=full_name.split("/")[-1],
        description=row.get("description") or "",
        url=f"https://github.com/{full_name}",
        stars=int(row.get("stars") or 0),
        forks=int(row.get("forks") or 0),
        open_issues=0,
        language=row.get("primary_language") or UNKNOWN_LANGUAGE,
        created_at=now,
        pushed_at=now,
        synthetic_timestamps=True,
    )


class OSSInsightSource(TrendingSource):
    TRENDS_URL = "https://api.ossinsight.io/v1/trends/repos"

    async def fetch_trending(self) -> List[RepositoryCandidate]:
        """
        Weekly trending repos from OSSInsight.
        The API has no creation or push dates, so rows are stamped "now" and
        flagged as synthetic. Failure yields an empty list; malformed rows are skipped.
        """
        try:
            data = await self.http_client.fetch_json(self.TRENDS_URL, params={"period": "past_week"})
        except Exception as e:
            logger.warning(f"OSSInsight fetch failed (non-fatal): {e}")
            return []

        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            logger.warning(f"Unexpected OSSInsight payload ({type(data).__name__}), ignoring")
            return []
        rows = data["data"].get("rows") or []
        if not isinstance(rows, list):
            logger.warning("OSSInsight rows is not a list, ignoring")
            return []

        now = datetime.now(timezone.utc)
        repos = []
        for row in rows:
            try:
                repo = parse_trending_row(row, now)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed OSSInsight row {row!r}: {e}")
                continue
            if repo is not None:
                repos.append(repo)
        logger.info(f"OSSInsight returned {len(repos)} trending repos")
        return repos
