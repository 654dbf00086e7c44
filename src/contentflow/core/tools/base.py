"""Collaborator contracts.

Every external service a node calls into is modeled as an asynchronous
request/response interface. Requests and responses are pydantic models; the
services themselves are ``typing.Protocol`` classes so any object with the
right coroutine satisfies them. A ``Toolbox`` carries the instances for one
engine.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from contentflow.core.errors import CollaboratorError


class Message(BaseModel):
    """Base for collaborator messages: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# -- content sources -------------------------------------------------------

class ScrapeRequest(Message):
    url: str
    selector: Optional[str] = None


class ScrapeResponse(Message):
    content: str
    source_reference: Optional[Dict[str, Any]] = Field(default=None, alias="source_reference")


class FeedRequest(Message):
    urls: List[str]
    max_items: int = 10


class SearchRequest(Message):
    """Keyword or query search with free-form filters (source, timeRange, yearFrom, ...)."""
    query: str
    max_results: int = 10
    filters: Dict[str, Any] = Field(default_factory=dict)


class ArticlesResponse(Message):
    """Items bear at least a title and a description/content field."""
    articles: List[Dict[str, Any]] = Field(default_factory=list)


class PapersResponse(Message):
    """Items bear at least a title and an abstract."""
    papers: List[Dict[str, Any]] = Field(default_factory=list)


class ResearchRequest(Message):
    query: str
    depth: str = "medium"
    include_sources: bool = True


class ResearchResponse(Message):
    research: str
    sources: List[Dict[str, Any]] = Field(default_factory=list)
    related_questions: List[str] = Field(default_factory=list)


# -- generation ------------------------------------------------------------

class ModelConfig(Message):
    """Which model serves a generation call."""
    model: str
    provider: str = "OpenAI"

    @classmethod
    def for_model(cls, model: str) -> "ModelConfig":
        """Derive the provider from the model name prefix."""
        if model.startswith("gpt-"):
            provider = "OpenAI"
        elif model.startswith("claude-"):
            provider = "Anthropic"
        else:
            provider = "Google"
        return cls(model=model, provider=provider)


class TextGenerationRequest(Message):
    prompt: str
    model: ModelConfig
    system: Optional[str] = None


class TextGenerationResponse(Message):
    text: str


class TranslationRequest(Message):
    content: str
    target_language: str
    provider: str = "gemini"


class TranslationResponse(Message):
    content: str


class ImageRequest(Message):
    prompt: str = ""
    title: str = ""
    content: str = ""
    custom_instructions: str = ""
    style: str = "natural"
    size: str = "1024x1024"
    quality: str = "standard"
    model: str = "dall-e-3"
    force_generate: bool = False


class ImageResponse(Message):
    image_url: str
    prompt: str = ""
    was_reused: bool = False
    was_ai_generated: bool = True
    generated_with: str = "Unknown"
    file_name: str = "unknown"


# -- analysis ----------------------------------------------------------------

class SeoRequest(Message):
    content: str
    title: str
    model: str
    target_keywords: Optional[str] = None
    analysis_focus: str = "comprehensive"
    custom_instructions: Optional[str] = None


class SeoResponse(Message):
    """``analysis`` carries at least ``seo_score`` and ``improvements``."""
    analysis: Dict[str, Any]


class StructureRequest(Message):
    content: str
    min_word_count: int = 300
    require_conclusion: bool = True


class StructureMetadata(Message):
    title: str = "Untitled"
    subtitle: Optional[str] = None
    excerpt: str = ""
    word_count: int = 0
    section_count: int = 0
    has_conclusion: bool = False


class StructureReport(Message):
    score: int
    is_valid: bool
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    metadata: StructureMetadata = Field(default_factory=StructureMetadata)


# -- output ------------------------------------------------------------------

class PublishRequest(Message):
    content: str
    title: str
    slug: Optional[str] = None
    image_url: Optional[str] = None
    category: str = "AI Generated"
    status: str = "draft"
    provider: str = "AI Processor"
    reporter_id: Optional[str] = None
    is_rtl: bool = Field(default=False, alias="isRTL")
    target_language: str = "en"
    source_references: List[Dict[str, Any]] = Field(default_factory=list, alias="source_references")


class PublishedArticle(Message):
    id: str
    title: str
    slug: str
    status: str
    url: Optional[str] = None


class SocialPostRequest(Message):
    platform: str
    message: str
    image_url: Optional[str] = None
    link: Optional[str] = None
    account_id: Optional[str] = None


class SocialPostResponse(Message):
    post_id: str
    url: Optional[str] = None


class EmailRequest(Message):
    recipient: str
    subject: str
    body: str


class EmailResponse(Message):
    delivered: bool


# -- protocols ---------------------------------------------------------------

@runtime_checkable
class ContentScraper(Protocol):
    async def scrape(self, request: ScrapeRequest) -> ScrapeResponse: ...


@runtime_checkable
class FeedReader(Protocol):
    async def fetch(self, request: FeedRequest) -> ArticlesResponse: ...


@runtime_checkable
class NewsSearch(Protocol):
    async def discover(self, request: SearchRequest) -> ArticlesResponse: ...


@runtime_checkable
class AcademicSearch(Protocol):
    async def search(self, request: SearchRequest) -> PapersResponse: ...


@runtime_checkable
class ResearchService(Protocol):
    async def research(self, request: ResearchRequest) -> ResearchResponse: ...


@runtime_checkable
class TextGenerator(Protocol):
    async def generate(self, request: TextGenerationRequest) -> TextGenerationResponse: ...


@runtime_checkable
class Translator(Protocol):
    async def translate(self, request: TranslationRequest) -> TranslationResponse: ...


@runtime_checkable
class ImageGenerator(Protocol):
    async def generate(self, request: ImageRequest) -> ImageResponse: ...


@runtime_checkable
class SeoAnalyzer(Protocol):
    async def analyze(self, request: SeoRequest) -> SeoResponse: ...


@runtime_checkable
class StructureValidator(Protocol):
    async def validate(self, request: StructureRequest) -> StructureReport: ...


@runtime_checkable
class ArticlePublisher(Protocol):
    async def publish(self, request: PublishRequest) -> PublishedArticle: ...


@runtime_checkable
class SocialPoster(Protocol):
    async def post(self, request: SocialPostRequest) -> SocialPostResponse: ...


@runtime_checkable
class Notifier(Protocol):
    async def send(self, request: EmailRequest) -> EmailResponse: ...


class Toolbox(BaseModel):
    """Collaborator instances available to node handlers.

    Every slot is optional; a node whose collaborator is missing fails with
    CollaboratorError when it runs, not when the toolbox is built.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    scraper: Optional[Any] = None
    feeds: Optional[Any] = None
    news: Optional[Any] = None
    scholar: Optional[Any] = None
    research: Optional[Any] = None
    text_generator: Optional[Any] = None
    translator: Optional[Any] = None
    image_generator: Optional[Any] = None
    seo_analyzer: Optional[Any] = None
    structure_validator: Optional[Any] = None
    publisher: Optional[Any] = None
    social_poster: Optional[Any] = None
    notifier: Optional[Any] = None

    def require(self, name: str) -> Any:
        """Return the named collaborator.

        Raises:
            CollaboratorError: If the slot is empty
        """
        tool = getattr(self, name, None)
        if tool is None:
            raise CollaboratorError(f"No {name.replace('_', ' ')} collaborator configured")
        return tool
