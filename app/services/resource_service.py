"""
Resource enrichment stage: search, deduplicate, classify, diversify.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set
from urllib.parse import quote_plus, urlsplit, urlunsplit

from app.core.errors import DelegateUnavailable
from app.db.models.roadmap import ResourceType
from app.schemas.roadmap import MilestonePlan
from app.search.provider import SearchProvider

logger = logging.getLogger(__name__)

RESOURCES_PER_MILESTONE = 4
RESULTS_PER_QUERY = 3
MAX_TITLE_LENGTH = 120

ORDINAL_LABEL_RE = re.compile(
    r"^\s*(?:module|day|week|phase|step|stage|part|milestone|unit|level|hour|month)\s*#?\s*\d+\s*[:.)\-–—]*\s*",
    re.IGNORECASE,
)

# First matching rule wins; anything else is DOCS.
CLASSIFICATION_RULES = (
    (ResourceType.YOUTUBE, ("youtube.com", "youtu.be")),
    (ResourceType.GITHUB, ("github.com",)),
    (ResourceType.INTERACTIVE, (
        "codecademy.com", "freecodecamp.org/learn", "leetcode.com", "exercism.org",
        "replit.com", "codepen.io", "hackerrank.com", "scrimba.com", "kaggle.com/learn",
    )),
    (ResourceType.ARTICLE, (
        "medium.com", "dev.to", "hashnode", "substack.com", "freecodecamp.org/news", "/blog",
    )),
)


@dataclass
class ResourceCandidate:
    title: str
    url: str
    type: str
    score: Optional[float] = None


@dataclass
class EnrichedMilestone:
    plan: MilestonePlan
    topic: str
    resources: List[ResourceCandidate]


def search_topic(title: str) -> str:
    """'Day 2: Goroutines' -> 'Goroutines'."""
    topic = ORDINAL_LABEL_RE.sub("", title or "").strip()
    return topic or (title or "").strip()


def classify_resource(url: str) -> str:
    lowered = (url or "").lower()
    for resource_type, needles in CLASSIFICATION_RULES:
        if any(needle in lowered for needle in needles):
            return resource_type
    return ResourceType.DOCS


def url_key(url: str) -> str:
    """Dedup key: lower-cased scheme and host, no fragment, no trailing slash."""
    parts = urlsplit((url or "").strip())
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path.rstrip("/"), parts.query, ""))


def build_queries(topic: str, goal: str, intensive: bool) -> List[str]:
    queries = [
        f"{topic} tutorial for {goal}",
        f"{topic} official documentation",
        f"{topic} example project github",
    ]
    return queries[:1] if intensive else queries


def diversify(candidates: Iterable[ResourceCandidate], limit: int = RESOURCES_PER_MILESTONE) -> List[ResourceCandidate]:
    """
    Pick up to `limit` resources, one per type first (arrival order), then
    backfill from the rest by descending relevance score.
    """
    selected: List[ResourceCandidate] = []
    remainder: List[ResourceCandidate] = []
    seen_types: Set[str] = set()
    for candidate in candidates:
        if len(selected) < limit and candidate.type not in seen_types:
            selected.append(candidate)
            seen_types.add(candidate.type)
        else:
            remainder.append(candidate)

    if len(selected) < limit:
        remainder.sort(key=lambda c: c.score or 0.0, reverse=True)
        selected.extend(remainder[:limit - len(selected)])
    return selected


def placeholder_resource(topic: str) -> ResourceCandidate:
    return ResourceCandidate(
        title=f"Search: {topic}",
        url=f"https://www.google.com/search?q={quote_plus(topic)}",
        type=ResourceType.DOCS,
        score=None,
    )


class ResourceEnricher:
    def __init__(self, search: SearchProvider, results_per_query: int = RESULTS_PER_QUERY):
        self.search = search
        self.results_per_query = results_per_query

    def _collect(self, queries: List[str], global_seen: Set[str]) -> List[ResourceCandidate]:
        local_seen: Set[str] = set()
        candidates = []
        for query in queries:
            try:
                results = self.search.search(query, max_results=self.results_per_query)
            except DelegateUnavailable as e:
                logger.warning(f"Search failed for query={query!r}: {e.message}")
                continue
            for result in results:
                key = url_key(result.url)
                if not key or key in local_seen or key in global_seen:
                    continue
                local_seen.add(key)
                candidates.append(ResourceCandidate(
                    title=(result.title or result.url)[:MAX_TITLE_LENGTH],
                    url=result.url,
                    type=classify_resource(result.url),
                    score=result.score,
                ))
        return candidates

    def enrich(self, milestones: List[MilestonePlan], goal: str, intensive: bool = False) -> List[EnrichedMilestone]:
        """Attach resources to each milestone, in milestone order."""
        global_seen: Set[str] = set()
        enriched = []
        for milestone in milestones:
            topic = search_topic(milestone.title)
            candidates = self._collect(build_queries(topic, goal, intensive), global_seen)
            chosen = diversify(candidates)
            if chosen:
                global_seen.update(url_key(c.url) for c in chosen)
            else:
                logger.warning(f"No resources found for topic={topic!r}, adding search placeholder")
                chosen = [placeholder_resource(topic)]
            enriched.append(EnrichedMilestone(
                plan=milestone.model_copy(update={"title": topic}),
                topic=topic,
                resources=chosen,
            ))
        return enriched
