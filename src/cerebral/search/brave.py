"""Brave Search web API client."""

from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

from ..core.errors import SearchUnavailableError
from ..models.research import SearchResult

logger = logging.getLogger(__name__)


class BraveSearchClient:
    name = "brave"
    API_URL = "https://api.search.brave.com/res/v1/web/search"

    def __init__(self, config: dict, timeout: float = 15):
        self.config = config
        self.timeout = timeout

    def _get_api_key(self) -> Optional[str]:
        env_var = self.config.get("api_key_env", "BRAVE_SEARCH_API_KEY")
        return os.environ.get(env_var)

    @staticmethod
    def parse_results(data: dict) -> list[SearchResult]:
        """Extract web results from a Brave response body."""
        hits = (data.get("web") or {}).get("results") or []
        return [
            SearchResult(
                title=hit.get("title") or "Untitled",
                url=hit.get("url") or "",
                description=hit.get("description") or "",
            )
            for hit in hits
        ]

    async def search(self, query: str, count: int = 5) -> list[SearchResult]:
        api_key = self._get_api_key()
        if not api_key:
            env_var = self.config.get("api_key_env", "BRAVE_SEARCH_API_KEY")
            raise SearchUnavailableError(f"API key not found in environment variable: {env_var}")

        params = {
            "q": query,
            "count": count,
            "safesearch": self.config.get("safesearch", "moderate"),
            "search_lang": self.config.get("search_lang", "en"),
            "country": self.config.get("country", "US"),
        }
        headers = {
            "Accept": "application/json",
            "X-Subscription-Token": api_key,
        }

        url = self.config.get("endpoint", self.API_URL)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()

        results = self.parse_results(data)[:count]
        logger.debug("Brave returned %d results for %r", len(results), query)
        return results
