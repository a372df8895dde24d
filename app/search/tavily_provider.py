"""
Tavily search provider over plain HTTPS (httpx).
"""
import logging
from typing import List, Optional

import httpx

from app.core import config
from app.core.errors import DelegateUnavailable
from app.search.provider import SearchProvider, SearchResult

logger = logging.getLogger(__name__)


class TavilySearchProvider(SearchProvider):
    """Search provider backed by the Tavily search API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key or config.TAVILY_API_KEY
        self.api_url = api_url or config.TAVILY_API_URL
        self.timeout = timeout or config.SEARCH_TIMEOUT_SECONDS
        self._client = client
        if not self.api_key:
            logger.warning("TAVILY_API_KEY not configured - resource search disabled")

    def search(self, query: str, max_results: int = 3) -> List[SearchResult]:
        if not self.api_key:
            raise DelegateUnavailable("Search provider not configured", delegate="search")

        payload = {
            "api_key": self.api_key,
            "query": query,
            "max_results": max_results,
            "search_depth": "basic",
        }
        try:
            if self._client is not None:
                response = self._client.post(self.api_url, json=payload, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.api_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Search API error: {e.response.status_code} for query={query!r}")
            raise DelegateUnavailable(f"Search API returned {e.response.status_code}", delegate="search") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Search request failed for query={query!r}: {e}", exc_info=True)
            raise DelegateUnavailable("Search request failed", delegate="search") from e

        results = []
        for item in (data.get("results") or [])[:max_results]:
            url = (item.get("url") or "").strip()
            if not url:
                continue
            score = item.get("score")
            results.append(SearchResult(
                title=(item.get("title") or url).strip(),
                url=url,
                score=float(score) if isinstance(score, (int, float)) else None,
            ))
        logger.debug(f"Search returned {len(results)} results for query={query!r}")
        return results
