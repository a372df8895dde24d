"""
Search Provider interface: query in, ranked results out.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class SearchResult:
    """One ranked web search hit."""
    title: str
    url: str
    score: Optional[float] = None


class SearchProvider(ABC):
    """Abstract base class for web search providers."""

    @abstractmethod
    def search(self, query: str, max_results: int = 3) -> List[SearchResult]:
        """
        Run a web search.

        Args:
            query: Free-text query
            max_results: Upper bound on returned results

        Returns:
            Results in the provider's ranking order

        Raises:
            DelegateUnavailable: if the search backend fails
        """
