"""Tests for the trigger and content-source handlers."""

import pytest

from contentflow.core.errors import CollaboratorError, NodeConfigurationError
from contentflow.core.graph.executor import NodeExecutor
from contentflow.core.graph.registry import NodeKind
from contentflow.core.graph.state import NodeStatus
from contentflow.core.tools.base import Toolbox


class TestScraper:
    """Test suite for the web scraper."""

    @pytest.mark.asyncio
    async def test_partial_failure(self, executor, trace, make_node):
        """One bad URL yields one error entry; the node still completes."""
        node = make_node("s", NodeKind.CONTENT_SCRAPER, urls=["https://good.example", "https://bad.example"])
        output = await executor.execute(node, {"triggered": True})

        assert [item["url"] for item in output["scrapedContent"]] == ["https://good.example"]
        assert output["urls"] == ["https://good.example", "https://bad.example"]
        assert output["triggered"] is True

        errors = trace.errors()
        assert len(errors) == 1
        assert errors[0].message == "Failed to scrape https://bad.example: HTTP 500 from https://bad.example"
        assert trace.entries[-1].status == NodeStatus.COMPLETED
        assert trace.entries[-1].message == "Scraped 1 of 2 URLs"

    @pytest.mark.asyncio
    async def test_source_reference_kept(self, executor, make_node):
        """Each scraped item carries its source reference."""
        output = await executor.execute(make_node("s", NodeKind.CONTENT_SCRAPER, urls=["https://good.example"]))
        assert output["scrapedContent"][0]["source_reference"]["url"] == "https://good.example"

    @pytest.mark.asyncio
    async def test_newline_separated_urls(self, executor, fakes, make_node):
        """The editor's newline-separated text is split into URLs."""
        await executor.execute(make_node("s", NodeKind.CONTENT_SCRAPER, urls="https://a.example\n\n https://b.example "))
        assert [request.url for request in fakes.scraper.requests] == ["https://a.example", "https://b.example"]

    @pytest.mark.asyncio
    async def test_no_urls(self, executor, fakes, make_node):
        """A scraper without URLs fails before calling anything."""
        with pytest.raises(NodeConfigurationError, match="No URLs configured for web scraper"):
            await executor.execute(make_node("s", NodeKind.CONTENT_SCRAPER))
        assert fakes.scraper.requests == []

    @pytest.mark.asyncio
    async def test_all_urls_fail(self, executor, trace, make_node):
        """When every URL fails the node completes with nothing scraped."""
        output = await executor.execute(make_node("s", NodeKind.CONTENT_SCRAPER, urls=["https://bad.example"]))
        assert output["scrapedContent"] == []
        assert trace.entries[-1].message == "Scraped 0 of 1 URLs"


class TestFeedAndSearch:
    """Test suite for the feed, search and research sources."""

    @pytest.mark.asyncio
    async def test_feed(self, executor, fakes, trace, make_node):
        """Feed items land under ``articles``."""
        output = await executor.execute(
            make_node("f", NodeKind.FEED_AGGREGATOR, urls=["https://feed.example/rss"], maxItems=5)
        )
        assert output["articles"][0]["title"] == "Feed item"
        assert fakes.feeds.requests[0].max_items == 5
        assert trace.entries[-1].message == "Fetched 1 articles from RSS feeds"

    @pytest.mark.asyncio
    async def test_feed_requires_urls(self, executor, make_node):
        with pytest.raises(NodeConfigurationError, match="No RSS URLs configured"):
            await executor.execute(make_node("f", NodeKind.FEED_AGGREGATOR, urls=[]))

    @pytest.mark.asyncio
    async def test_academic_search(self, executor, fakes, make_node):
        """Papers land under ``papers`` and the filters are forwarded."""
        output = await executor.execute(
            make_node("a", NodeKind.ACADEMIC_SEARCH, query="graph theory", yearFrom=2020)
        )
        assert output["papers"][0]["title"] == "On Graphs"
        request = fakes.scholar.requests[0]
        assert request.query == "graph theory"
        assert request.filters["yearFrom"] == 2020

    @pytest.mark.asyncio
    async def test_academic_search_requires_query(self, executor, make_node):
        with pytest.raises(NodeConfigurationError, match="No search query configured"):
            await executor.execute(make_node("a", NodeKind.ACADEMIC_SEARCH))

    @pytest.mark.asyncio
    async def test_news_discovery(self, executor, fakes, trace, make_node):
        """Keyword lists are joined and the filters forwarded."""
        output = await executor.execute(
            make_node("n", NodeKind.NEWS_DISCOVERY, keywords=["solar", "wind"], timeRange="week")
        )
        assert len(output["articles"]) == 3
        request = fakes.news.requests[0]
        assert request.query == "solar, wind"
        assert request.filters == {"source": "all", "timeRange": "week"}
        assert trace.entries[-1].message == "Discovered 3 news articles"

    @pytest.mark.asyncio
    async def test_deep_research(self, executor, trace, make_node):
        """Research text, sources and follow-up questions are added."""
        output = await executor.execute(make_node("r", NodeKind.DEEP_RESEARCH, query="fusion power"))
        assert output["research"] == "Findings about the topic."
        assert output["relatedQuestions"] == ["What next?"]
        assert trace.entries[-1].message == "Completed research with 1 sources"

    @pytest.mark.asyncio
    async def test_malformed_collaborator_response(self, trace, make_node):
        """A collaborator returning the wrong shape fails the node."""
        class BrokenResearch:
            async def research(self, request):
                return {"unexpected": True}

        executor = NodeExecutor(trace, tools=Toolbox(research=BrokenResearch()))
        with pytest.raises(CollaboratorError, match="Research failed: malformed response"):
            await executor.execute(make_node("r", NodeKind.DEEP_RESEARCH, query="fusion"))
