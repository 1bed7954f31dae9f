from abc import ABC, abstractmethod
from typing import List, Optional

from newsroom.http_client import HTTPClient
from newsroom.models import Release, RepositoryCandidate


class RepositorySource(ABC):
    """
    Where candidates come from. Implementations own pagination, auth and
    transient retries, and raise SourceError once those are exhausted.
    """

    def __init__(self, http_client: HTTPClient):
        self.http_client = http_client
        self.name = self.__class__.__name__

    @abstractmethod
    async def search(self, query: str, sort: str = "stars", per_page: int = 15) -> List[RepositoryCandidate]:
        pass

    @abstractmethod
    async def fetch_readme(self, full_name: str) -> Optional[str]:
        pass

    @abstractmethod
    async def fetch_latest_release(self, full_name: str) -> Optional[Release]:
        pass


class TrendingSource(ABC):
    """An external trending list; rows may carry made-up timestamps."""

    def __init__(self, http_client: HTTPClient):
        self.http_client = http_client
        self.name = self.__class__.__name__

    @abstractmethod
    async def fetch_trending(self) -> List[RepositoryCandidate]:
        pass
