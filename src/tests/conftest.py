"""Shared fixtures: fake collaborators, a toolbox wired with them, and a
recording handler for runner tests."""

import asyncio
import copy
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from contentflow.core.errors import CollaboratorError
from contentflow.core.graph import registry
from contentflow.core.graph.nodes import NodeHandler, NodeOutput, WorkflowNode
from contentflow.core.graph.registry import NodeKind
from contentflow.core.tools.base import (
    ArticlesResponse,
    EmailResponse,
    ImageResponse,
    PapersResponse,
    PublishedArticle,
    ResearchResponse,
    ScrapeResponse,
    SeoResponse,
    SocialPostResponse,
    TextGenerationResponse,
    Toolbox,
    TranslationResponse,
)
from contentflow.core.tools.structure_validator import ArticleStructureValidator


class FakeScraper:
    def __init__(self, failing: Iterable[str] = ()):
        self.failing = set(failing)
        self.requests = []

    async def scrape(self, request):
        self.requests.append(request)
        if request.url in self.failing:
            raise ConnectionError(f"HTTP 500 from {request.url}")
        return ScrapeResponse(
            content=f"Content of {request.url}",
            source_reference={"url": request.url, "title": f"Source {request.url}"},
        )


class FakeFeeds:
    def __init__(self, articles: Optional[List[Dict[str, Any]]] = None):
        self.articles = articles if articles is not None else [
            {"title": "Feed item", "description": "From a feed", "link": "https://feed.example/1"},
        ]
        self.requests = []

    async def fetch(self, request):
        self.requests.append(request)
        return ArticlesResponse(articles=self.articles)


class FakeNews:
    def __init__(self, count: int = 3):
        self.articles = [
            {
                "title": f"News {i}",
                "description": f"Story number {i}",
                "url": f"https://news.example/{i}",
                "source_reference": {"url": f"https://news.example/{i}", "title": f"News {i}"},
            }
            for i in range(1, count + 1)
        ]
        self.requests = []

    async def discover(self, request):
        self.requests.append(request)
        return ArticlesResponse(articles=self.articles)


class FakeScholar:
    def __init__(self):
        self.requests = []

    async def search(self, request):
        self.requests.append(request)
        return PapersResponse(papers=[
            {"title": "On Graphs", "abstract": "We study graphs.", "url": "https://papers.example/1"},
        ])


class FakeResearch:
    def __init__(self):
        self.requests = []

    async def research(self, request):
        self.requests.append(request)
        return ResearchResponse(
            research="Findings about the topic.",
            sources=[{"url": "https://research.example/a"}],
            related_questions=["What next?"],
        )


class FakeTextGenerator:
    def __init__(self, text: str = "# Solar Power Rises\n\nSolar is growing fast.\n\n## Outlook\n\nBright."):
        self.text = text
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        return TextGenerationResponse(text=self.text)


class FakeTranslator:
    def __init__(self, translations: Optional[Dict[str, str]] = None, failing: Iterable[str] = ()):
        self.translations = translations or {}
        self.failing = set(failing)
        self.requests = []

    async def translate(self, request):
        self.requests.append(request)
        if request.content in self.failing:
            raise RuntimeError("translation quota exceeded")
        return TranslationResponse(
            content=self.translations.get(request.content, f"[{request.target_language}] {request.content}")
        )


class FakeImageGenerator:
    def __init__(self):
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        return ImageResponse(
            image_url="https://images.example/cover.png",
            prompt=request.prompt or f"Illustration: {request.title}",
            generated_with="Fake",
            file_name="cover.png",
        )


class FakeSeoAnalyzer:
    def __init__(self):
        self.requests = []

    async def analyze(self, request):
        self.requests.append(request)
        return SeoResponse(analysis={"seo_score": 82, "improvements": ["Add meta description"]})


class FakePublisher:
    def __init__(self):
        self.requests = []

    async def publish(self, request):
        self.requests.append(request)
        return PublishedArticle(id="article-1", title=request.title, slug=request.slug, status=request.status)


class FakeSocialPoster:
    def __init__(self):
        self.requests = []

    async def post(self, request):
        self.requests.append(request)
        return SocialPostResponse(post_id="post-1", url="https://social.example/post-1")


class FakeNotifier:
    def __init__(self, delivered: bool = True):
        self.delivered = delivered
        self.requests = []

    async def send(self, request):
        self.requests.append(request)
        return EmailResponse(delivered=self.delivered)


@pytest.fixture
def fakes() -> SimpleNamespace:
    """One fake per collaborator slot."""
    return SimpleNamespace(
        scraper=FakeScraper(failing={"https://bad.example"}),
        feeds=FakeFeeds(),
        news=FakeNews(),
        scholar=FakeScholar(),
        research=FakeResearch(),
        text_generator=FakeTextGenerator(),
        translator=FakeTranslator(translations={"Body text": "Texto del cuerpo", "Hello World": "Hola Mundo"}),
        image_generator=FakeImageGenerator(),
        seo_analyzer=FakeSeoAnalyzer(),
        structure_validator=ArticleStructureValidator(),
        publisher=FakePublisher(),
        social_poster=FakeSocialPoster(),
        notifier=FakeNotifier(),
    )


@pytest.fixture
def toolbox(fakes: SimpleNamespace) -> Toolbox:
    return Toolbox(**vars(fakes))


@pytest.fixture
def make_node():
    """Build a WorkflowNode: ``make_node("a", connected=["b"], delay=0.1)``."""
    def build(node_id: str, kind: Any = NodeKind.CONTENT_QUALITY_ANALYZER, connected: Iterable[str] = (), **config: Any) -> WorkflowNode:
        kind_value = kind.value if isinstance(kind, NodeKind) else kind
        return WorkflowNode(id=node_id, kind=kind_value, label=node_id, config=config, connected=list(connected))
    return build


@pytest.fixture
def recorder(monkeypatch) -> List[Tuple[str, Dict[str, Any]]]:
    """Route the content-quality-analyzer kind to a handler that records its inputs.

    The handler marks the payload with its node id, honours ``delay`` and
    ``fail`` from the node config, and appends ``(node_id, input)`` to the
    returned list.
    """
    calls: List[Tuple[str, Dict[str, Any]]] = []

    class RecordingHandler(NodeHandler):
        async def run(self, node, config, payload, context):
            calls.append((node.id, copy.deepcopy(payload)))
            if node.config.get("delay"):
                await asyncio.sleep(node.config["delay"])
            if node.config.get("fail"):
                raise CollaboratorError(f"{node.label} failed")
            payload[node.id] = True
            payload.setdefault("visited", []).append(node.id)
            return NodeOutput(data=payload, message=f"Recorded {node.id}")

    monkeypatch.setitem(registry._handlers, NodeKind.CONTENT_QUALITY_ANALYZER, RecordingHandler)
    return calls
