"""Handlers for the trigger and the content-source kinds.

Source nodes pull material from a collaborator and add it to the payload
under a list key (``scrapedContent``, ``articles``, ``papers``) or, for deep
research, as text.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field, field_validator

from contentflow.core.errors import CollaboratorError
from contentflow.core.graph.nodes.base.node import NodeConfig, NodeContext, NodeHandler, NodeOutput, WorkflowNode
from contentflow.core.graph.registry import NodeKind, register_handler
from contentflow.core.graph.state import NodeStatus
from contentflow.core.logging import LogComponent, get_logger
from contentflow.core.tools.base import (
    ArticlesResponse,
    FeedRequest,
    PapersResponse,
    ResearchRequest,
    ResearchResponse,
    ScrapeRequest,
    ScrapeResponse,
    SearchRequest,
)

logger = get_logger(LogComponent.NODES)


def _url_list(value: Any) -> Any:
    """Accept the editor's newline-separated text as well as a list."""
    if isinstance(value, str):
        return value.splitlines()
    return value


def _clean_urls(urls: List[str], message: str) -> List[str]:
    cleaned = [url.strip() for url in urls if url and url.strip()]
    if not cleaned:
        raise ValueError(message)
    return cleaned


def _not_blank(value: Optional[str], message: str) -> str:
    if not value or not value.strip():
        raise ValueError(message)
    return value.strip()


class TriggerConfig(NodeConfig):
    schedule: str = "manual"


@register_handler(NodeKind.TRIGGER)
class TriggerHandler(NodeHandler):
    """Entry point of a run. Marks the payload as triggered."""
    config_model = TriggerConfig

    async def run(self, node: WorkflowNode, config: TriggerConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        payload.update(triggered=True, timestamp=datetime.now().isoformat())
        return NodeOutput(data=payload, message="Workflow triggered successfully")


class ScraperConfig(NodeConfig):
    urls: List[str] = Field(default_factory=list, validate_default=True)
    selector: Optional[str] = None

    @field_validator("urls", mode="before")
    @classmethod
    def split_lines(cls, value: Any) -> Any:
        return _url_list(value)

    @field_validator("urls")
    @classmethod
    def require_urls(cls, urls: List[str]) -> List[str]:
        return _clean_urls(urls, "No URLs configured for web scraper")


@register_handler(NodeKind.CONTENT_SCRAPER)
class ContentScraperHandler(NodeHandler):
    """Scrape each configured URL in turn.

    A URL that fails is logged as one ``error`` entry and skipped; the node
    still completes with whatever the other URLs returned.
    """
    config_model = ScraperConfig

    async def run(self, node: WorkflowNode, config: ScraperConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        scraper = context.tool("scraper")
        scraped: List[Dict[str, Any]] = []
        for url in config.urls:
            try:
                response = await context.call(
                    scraper.scrape(ScrapeRequest(url=url, selector=config.selector)),
                    f"Failed to scrape {url}",
                    response_model=ScrapeResponse,
                )
            except CollaboratorError as e:
                logger.warning(f"{node.label}: {e}")
                context.log(NodeStatus.ERROR, str(e))
                continue
            item: Dict[str, Any] = {"url": url, "content": response.content}
            if response.source_reference:
                item["source_reference"] = response.source_reference
            scraped.append(item)
            context.log(NodeStatus.COMPLETED, f"Scraped content from {url}")

        payload.update(scrapedContent=scraped, urls=config.urls)
        return NodeOutput(data=payload, message=f"Scraped {len(scraped)} of {len(config.urls)} URLs")


class FeedConfig(NodeConfig):
    urls: List[str] = Field(default_factory=list, validate_default=True)
    max_items: int = Field(default=10, gt=0)

    @field_validator("urls", mode="before")
    @classmethod
    def split_lines(cls, value: Any) -> Any:
        return _url_list(value)

    @field_validator("urls")
    @classmethod
    def require_urls(cls, urls: List[str]) -> List[str]:
        return _clean_urls(urls, "No RSS URLs configured")


@register_handler(NodeKind.FEED_AGGREGATOR)
class FeedAggregatorHandler(NodeHandler):
    config_model = FeedConfig

    async def run(self, node: WorkflowNode, config: FeedConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        response = await context.call(
            context.tool("feeds").fetch(FeedRequest(urls=config.urls, max_items=config.max_items)),
            "RSS aggregation failed",
            response_model=ArticlesResponse,
        )
        payload["articles"] = response.articles
        return NodeOutput(data=payload, message=f"Fetched {len(response.articles)} articles from RSS feeds")


class AcademicSearchConfig(NodeConfig):
    query: str = Field(default="", validate_default=True)
    max_results: int = Field(default=20, gt=0)
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    include_abstracts: bool = True

    @field_validator("query")
    @classmethod
    def require_query(cls, value: str) -> str:
        return _not_blank(value, "No search query configured")


@register_handler(NodeKind.ACADEMIC_SEARCH)
class AcademicSearchHandler(NodeHandler):
    config_model = AcademicSearchConfig

    async def run(self, node: WorkflowNode, config: AcademicSearchConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        request = SearchRequest(
            query=config.query,
            max_results=config.max_results,
            filters={
                "yearFrom": config.year_from,
                "yearTo": config.year_to,
                "includeAbstracts": config.include_abstracts,
            },
        )
        response = await context.call(
            context.tool("scholar").search(request),
            "Academic search failed",
            response_model=PapersResponse,
        )
        payload["papers"] = response.papers
        return NodeOutput(data=payload, message=f"Found {len(response.papers)} academic papers")


class NewsDiscoveryConfig(NodeConfig):
    keywords: str = Field(default="", validate_default=True)
    source: str = "all"
    time_range: str = "day"
    max_results: int = Field(default=10, gt=0)

    @field_validator("keywords", mode="before")
    @classmethod
    def join_keywords(cls, value: Any) -> Any:
        if isinstance(value, list):
            return ", ".join(str(keyword) for keyword in value)
        return value

    @field_validator("keywords")
    @classmethod
    def require_keywords(cls, value: str) -> str:
        return _not_blank(value, "No keywords configured for news discovery")


@register_handler(NodeKind.NEWS_DISCOVERY)
class NewsDiscoveryHandler(NodeHandler):
    config_model = NewsDiscoveryConfig

    async def run(self, node: WorkflowNode, config: NewsDiscoveryConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        request = SearchRequest(
            query=config.keywords,
            max_results=config.max_results,
            filters={"source": config.source, "timeRange": config.time_range},
        )
        response = await context.call(
            context.tool("news").discover(request),
            "News discovery failed",
            response_model=ArticlesResponse,
        )
        payload["articles"] = response.articles
        return NodeOutput(data=payload, message=f"Discovered {len(response.articles)} news articles")


class DeepResearchConfig(NodeConfig):
    query: str = Field(default="", validate_default=True)
    depth: str = "medium"
    include_sources: bool = True

    @field_validator("query")
    @classmethod
    def require_query(cls, value: str) -> str:
        return _not_blank(value, "No research query configured")


@register_handler(NodeKind.DEEP_RESEARCH)
class DeepResearchHandler(NodeHandler):
    config_model = DeepResearchConfig

    async def run(self, node: WorkflowNode, config: DeepResearchConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        request = ResearchRequest(query=config.query, depth=config.depth, include_sources=config.include_sources)
        response = await context.call(
            context.tool("research").research(request),
            "Research failed",
            response_model=ResearchResponse,
        )
        payload.update(
            research=response.research,
            sources=response.sources,
            relatedQuestions=response.related_questions,
        )
        return NodeOutput(data=payload, message=f"Completed research with {len(response.sources)} sources")
