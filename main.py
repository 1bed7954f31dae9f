import logging
import asyncio
import sys
from datetime import date
from dotenv import load_dotenv

from newsroom.articles import ArticleGenerator
from newsroom.config import Settings, configure_logging
from newsroom.errors import ContentValidationError, NoFrontPageLeadError
from newsroom.history import recent_repo_names, record_edition
from newsroom.http_client import HTTPClient
from newsroom.llm import GeminiBackend
from newsroom.orchestrator import SectionFetcher
from newsroom.validation import validate_content
from sources.github import GitHubSource
from sources.ossinsight import OSSInsightSource


# Load env
load_dotenv()

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run_edition(settings: Settings):
    history = recent_repo_names(settings.publish_dir, settings.history_lookback)
    logger.info(f"History penalty covers {len(history)} repos from the last {settings.history_lookback} editions")

    # 1. Fetch, rank and enrich every section
    async with HTTPClient(token=settings.github_token) as github_http, HTTPClient(accept="application/json") as trending_http:
        fetcher = SectionFetcher(
            GitHubSource(github_http),
            trending=OSSInsightSource(trending_http),
            history_penalty=history,
        )
        slates = await fetcher.fetch_all_sections()

    # 2. Write the articles
    backend = GeminiBackend(settings.gemini_api_keys, settings.gemini_model)
    edition = await ArticleGenerator(backend).generate_edition(slates)

    # 3. Validate
    report = validate_content(edition)
    s = report.summary
    logger.info(
        f"Content summary: {s['sections']} sections, {s['articles']} articles, "
        f"{s['fallbacks']} fallbacks, {s['empty']} empty"
    )
    for warning in report.warnings:
        logger.warning(warning)
    if not report.valid:
        raise ContentValidationError(report.errors)

    # 4. Record
    if settings.dry_run:
        logger.info("DRY_RUN set: skipping edition write.")
    else:
        record_edition(edition, settings.publish_dir, date.today(), base_path=settings.base_path)
    return edition


async def main() -> int:
    logger.info("Starting The Git Times edition run...")
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    missing = settings.missing()
    if missing:
        logger.error(f"Missing required environment: {', '.join(missing)}")
        return 1

    try:
        await run_edition(settings)
    except NoFrontPageLeadError as e:
        logger.error(f"Edition aborted: {e}")
        return 1
    except ContentValidationError as e:
        for error in e.errors:
            logger.error(f"Validation failed: {error}")
        return 1

    logger.info("Edition complete.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
