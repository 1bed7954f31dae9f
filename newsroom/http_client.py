import logging
import httpx
from typing import Any, Mapping, Optional
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

logger = logging.getLogger(__name__)

USER_AGENT = "GitTimes/1.0 (+https://gittimes.com)"


def is_transient(exc: BaseException) -> bool:
    """Network errors, 5xx and garbled bodies are retried; 4xx never is."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, (httpx.RequestError, ValueError))


class HTTPClient:
    def __init__(
        self,
        token: Optional[str] = None,
        accept: str = "application/vnd.github+json",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": accept,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(
            headers=headers,
            follow_redirects=True,
            timeout=15.0,
            transport=transport,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10) + wait_random(0, 1),
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def fetch_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        GETs a JSON document, retrying transient failures with jittered backoff.
        Client errors (4xx) are raised on the first attempt.
        """
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
            logger.debug(f"Fetched {response.url}")
            return data
        except Exception as e:
            logger.warning(f"Request to {url} failed: {e}")
            raise  # Let tenacity decide on the retry

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
