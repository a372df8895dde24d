"""
Tests for resource enrichment: topic extraction, dedup, classification, diversification.
"""
import pytest

from app.db.models.roadmap import ResourceType
from app.schemas.roadmap import MilestonePlan
from app.search.provider import SearchResult
from app.services.resource_service import (
    ResourceCandidate,
    ResourceEnricher,
    build_queries,
    classify_resource,
    diversify,
    search_topic,
    url_key,
)


def milestone(title, description=""):
    return MilestonePlan(title=title, description=description, duration=1, duration_unit="days")


@pytest.mark.parametrize("url, expected", [
    ("https://www.youtube.com/watch?v=abc", ResourceType.YOUTUBE),
    ("https://youtu.be/abc", ResourceType.YOUTUBE),
    ("https://github.com/golang/go", ResourceType.GITHUB),
    ("https://go.dev/doc/tutorial", ResourceType.DOCS),
    ("https://medium.com/@someone/go-tips", ResourceType.ARTICLE),
    ("https://exercism.org/tracks/go", ResourceType.INTERACTIVE),
    ("", ResourceType.DOCS),
])
def test_classify_resource(url, expected):
    assert classify_resource(url) == expected


@pytest.mark.parametrize("title, topic", [
    ("Day 2: Goroutines", "Goroutines"),
    ("Week 3 - Testing in Go", "Testing in Go"),
    ("Module 1. Intro to SQL", "Intro to SQL"),
    ("Phase #4) Deployment", "Deployment"),
    ("Error Handling", "Error Handling"),
    ("Week 1", "Week 1"),
])
def test_search_topic_strips_ordinal_labels(title, topic):
    assert search_topic(title) == topic


def test_url_key_normalizes():
    assert url_key("HTTPS://Go.dev/doc/") == url_key("https://go.dev/doc#install")


def test_diversify_prefers_distinct_types():
    candidates = [
        ResourceCandidate("d1", "https://a.dev/1", ResourceType.DOCS, 0.5),
        ResourceCandidate("d2", "https://a.dev/2", ResourceType.DOCS, 0.5),
        ResourceCandidate("d3", "https://a.dev/3", ResourceType.DOCS, 0.5),
        ResourceCandidate("yt", "https://youtube.com/x", ResourceType.YOUTUBE, 0.5),
        ResourceCandidate("gh", "https://github.com/x", ResourceType.GITHUB, 0.5),
        ResourceCandidate("ar", "https://dev.to/x", ResourceType.ARTICLE, 0.5),
    ]

    chosen = diversify(candidates, limit=4)

    assert [c.type for c in chosen] == [
        ResourceType.DOCS, ResourceType.YOUTUBE, ResourceType.GITHUB, ResourceType.ARTICLE
    ]


def test_diversify_backfills_by_score():
    candidates = [
        ResourceCandidate("d1", "https://a.dev/1", ResourceType.DOCS, 0.2),
        ResourceCandidate("d2", "https://a.dev/2", ResourceType.DOCS, 0.9),
        ResourceCandidate("d3", "https://a.dev/3", ResourceType.DOCS, 0.4),
        ResourceCandidate("yt", "https://youtube.com/x", ResourceType.YOUTUBE, None),
    ]

    chosen = diversify(candidates, limit=3)

    assert [c.title for c in chosen] == ["d1", "yt", "d2"]


def test_enrich_deduplicates_urls(search):
    queries = build_queries("Goroutines", "Learn Go", intensive=False)
    search.responses = {
        queries[0]: [SearchResult("A", "https://go.dev/a", 0.9), SearchResult("A again", "https://go.dev/a/", 0.8)],
        queries[1]: [SearchResult("B", "https://go.dev/b", 0.7)],
        queries[2]: [SearchResult("A third time", "https://go.dev/a", 0.6)],
    }

    [enriched] = ResourceEnricher(search).enrich([milestone("Day 2: Goroutines")], "Learn Go")

    urls = [r.url for r in enriched.resources]
    assert urls == ["https://go.dev/a", "https://go.dev/b"]
    assert enriched.topic == "Goroutines"
    assert enriched.plan.title == "Goroutines"


def test_enrich_does_not_repeat_urls_across_milestones(search):
    shared = [SearchResult("Go Tour", "https://go.dev/tour", 0.9)]
    search.responses = {q: shared for q in build_queries("Syntax", "Learn Go", intensive=True)}
    search.responses.update({q: shared for q in build_queries("Channels", "Learn Go", intensive=True)})

    first, second = ResourceEnricher(search).enrich(
        [milestone("Day 1: Syntax"), milestone("Day 2: Channels")], "Learn Go", intensive=True
    )

    assert [r.url for r in first.resources] == ["https://go.dev/tour"]
    # Nothing new left for the second milestone, so it gets a search placeholder
    assert len(second.resources) == 1
    assert second.resources[0].url.startswith("https://www.google.com/search?q=")
    assert second.resources[0].type == ResourceType.DOCS


def test_intensive_roadmaps_use_one_query(search):
    ResourceEnricher(search).enrich([milestone("Hour 1: Basics")], "Learn SQL", intensive=True)

    assert search.queries == ["Basics tutorial for Learn SQL"]


def test_enrich_survives_search_outage(search):
    search.fail = True

    [enriched] = ResourceEnricher(search).enrich([milestone("Week 1: Pandas")], "Data analysis")

    assert len(search.queries) == 3
    assert enriched.resources[0].title == "Search: Pandas"
    assert "Pandas" in enriched.resources[0].url


def test_enrich_preserves_milestone_order(search):
    titles = ["Day 1: Alpha", "Day 2: Beta", "Day 3: Gamma"]

    enriched = ResourceEnricher(search).enrich([milestone(t) for t in titles], "Greek letters")

    assert [e.topic for e in enriched] == ["Alpha", "Beta", "Gamma"]
