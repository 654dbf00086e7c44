"""Node Registry

Catalog of node kinds: display label, palette category and default
configuration for each kind, plus the table of handler classes that execute
them. The catalog is pure data; handlers register themselves with
``register_handler`` when ``contentflow.core.graph.nodes`` is imported.

Example:
    ```python
    spec = get_kind_spec(NodeKind.TRANSLATOR)
    spec.label           # "Translator"
    spec.default_config  # {"targetLanguage": "es", "provider": "gemini"}
    ```
"""

import copy
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, TYPE_CHECKING
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from contentflow.core.graph.nodes.base.node import NodeHandler


class NodeKind(str, Enum):
    """Closed set of node kinds."""
    TRIGGER = "trigger"
    CONTENT_SCRAPER = "content-scraper"
    FEED_AGGREGATOR = "feed-aggregator"
    ACADEMIC_SEARCH = "academic-search"
    NEWS_DISCOVERY = "news-discovery"
    DEEP_RESEARCH = "deep-research"
    AI_CONTENT_PROCESSOR = "ai-content-processor"
    MULTI_SOURCE_SYNTHESIZER = "multi-source-synthesizer"
    CONTENT_FILTER = "content-filter"
    IMAGE_GENERATOR = "image-generator"
    TRANSLATOR = "translator"
    SEO_ANALYZER = "seo-analyzer"
    CONTENT_QUALITY_ANALYZER = "content-quality-analyzer"
    AI_SEO_OPTIMIZER = "ai-seo-optimizer"
    ENGAGEMENT_FORECASTER = "engagement-forecaster"
    CONTENT_PERFORMANCE_ANALYZER = "content-performance-analyzer"
    STRUCTURE_VALIDATOR = "structure-validator"
    PUBLISHER = "publisher"
    SOCIAL_POSTER = "social-poster"
    EMAIL_NOTIFIER = "email-notifier"


class NodeCategory(str, Enum):
    """Palette sections."""
    CONTROL = "Control"
    DATA_SOURCES = "Data Sources"
    PROCESSING = "Processing"
    ANALYSIS = "Analysis"
    OUTPUT = "Output"


class NodeKindSpec(BaseModel):
    """Registry entry for one node kind."""
    kind: NodeKind
    label: str
    category: NodeCategory
    default_config: Dict[str, Any] = Field(default_factory=dict)

    def new_config(self) -> Dict[str, Any]:
        """Fresh copy of the default configuration."""
        return copy.deepcopy(self.default_config)


# Names exported by earlier versions of the builder
LEGACY_KIND_ALIASES: Dict[str, NodeKind] = {
    "scraper": NodeKind.CONTENT_SCRAPER,
    "rss-aggregator": NodeKind.FEED_AGGREGATOR,
    "google-scholar-search": NodeKind.ACADEMIC_SEARCH,
    "perplexity-research": NodeKind.DEEP_RESEARCH,
    "ai-processor": NodeKind.AI_CONTENT_PROCESSOR,
    "filter": NodeKind.CONTENT_FILTER,
    "article-structure-validator": NodeKind.STRUCTURE_VALIDATOR,
    "email-sender": NodeKind.EMAIL_NOTIFIER,
}


def _spec(kind: NodeKind, label: str, category: NodeCategory, **defaults: Any) -> NodeKindSpec:
    return NodeKindSpec(kind=kind, label=label, category=category, default_config=defaults)


KIND_SPECS: Dict[NodeKind, NodeKindSpec] = {
    spec.kind: spec
    for spec in [
        _spec(NodeKind.TRIGGER, "Trigger", NodeCategory.CONTROL, schedule="manual"),
        _spec(NodeKind.CONTENT_SCRAPER, "Web Scraper", NodeCategory.DATA_SOURCES, urls=[]),
        _spec(NodeKind.FEED_AGGREGATOR, "RSS Aggregator", NodeCategory.DATA_SOURCES, urls=[], maxItems=10),
        _spec(
            NodeKind.ACADEMIC_SEARCH, "Google Scholar Search", NodeCategory.DATA_SOURCES,
            maxResults=20, includeAbstracts=True,
        ),
        _spec(
            NodeKind.NEWS_DISCOVERY, "News Discovery", NodeCategory.DATA_SOURCES,
            source="all", timeRange="day", maxResults=10,
        ),
        _spec(
            NodeKind.DEEP_RESEARCH, "Perplexity Research", NodeCategory.DATA_SOURCES,
            depth="medium", includeSources=True,
        ),
        _spec(
            NodeKind.AI_CONTENT_PROCESSOR, "AI Processor", NodeCategory.PROCESSING,
            contentType="article", writingStyle="Professional", targetAudience="General readers",
        ),
        _spec(
            NodeKind.MULTI_SOURCE_SYNTHESIZER, "Multi-Source Synthesizer", NodeCategory.PROCESSING,
            style="comprehensive", targetLength="medium", maintainAttribution=True, resolveConflicts=True,
        ),
        _spec(NodeKind.CONTENT_FILTER, "Filter", NodeCategory.PROCESSING),
        _spec(
            NodeKind.IMAGE_GENERATOR, "Image Generator", NodeCategory.PROCESSING,
            imageSize="1024x1024", imageStyle="natural", imageQuality="standard",
        ),
        _spec(NodeKind.TRANSLATOR, "Translator", NodeCategory.PROCESSING, targetLanguage="es", provider="gemini"),
        _spec(NodeKind.SEO_ANALYZER, "SEO Analyzer", NodeCategory.ANALYSIS, analysisFocus="comprehensive"),
        _spec(NodeKind.CONTENT_QUALITY_ANALYZER, "Content Quality Analyzer", NodeCategory.ANALYSIS),
        _spec(NodeKind.AI_SEO_OPTIMIZER, "AI SEO Optimizer", NodeCategory.ANALYSIS),
        _spec(NodeKind.ENGAGEMENT_FORECASTER, "Engagement Forecaster", NodeCategory.ANALYSIS),
        _spec(NodeKind.CONTENT_PERFORMANCE_ANALYZER, "Content Performance Analyzer", NodeCategory.ANALYSIS),
        _spec(
            NodeKind.STRUCTURE_VALIDATOR, "Article Structure Validator", NodeCategory.ANALYSIS,
            validationLevel="standard", minWordCount=300, requireConclusion=True,
        ),
        _spec(NodeKind.PUBLISHER, "Publisher", NodeCategory.OUTPUT, status="draft"),
        _spec(NodeKind.SOCIAL_POSTER, "Social Poster", NodeCategory.OUTPUT, platform="facebook"),
        _spec(
            NodeKind.EMAIL_NOTIFIER, "Email Sender", NodeCategory.OUTPUT,
            subject="New Article: {{article.title}}",
            body="A new article has been published. Read it here: {{article.url}}",
        ),
    ]
}


def resolve_kind(kind: Any) -> Optional[NodeKind]:
    """Map a stored kind string (canonical or legacy) to a NodeKind.

    Returns None for kinds the registry does not know.
    """
    if isinstance(kind, NodeKind):
        return kind
    if not isinstance(kind, str):
        return None
    try:
        return NodeKind(kind)
    except ValueError:
        return LEGACY_KIND_ALIASES.get(kind)


def get_kind_spec(kind: Any) -> NodeKindSpec:
    """Look up the registry entry for a kind.

    Raises:
        ValueError: If the kind is unknown
    """
    resolved = resolve_kind(kind)
    if resolved is None:
        raise ValueError(f"Unknown node kind: {kind}")
    return KIND_SPECS[resolved]


def label_for(kind: Any) -> str:
    """Display label for a kind, falling back to the raw kind string."""
    resolved = resolve_kind(kind)
    return KIND_SPECS[resolved].label if resolved else str(kind)


def kinds_by_category() -> Dict[NodeCategory, List[NodeKindSpec]]:
    """Registry entries grouped by palette section, in registry order."""
    grouped: Dict[NodeCategory, List[NodeKindSpec]] = {}
    for spec in KIND_SPECS.values():
        grouped.setdefault(spec.category, []).append(spec)
    return grouped


# Handler table, filled by @register_handler
_handlers: Dict[NodeKind, Type["NodeHandler"]] = {}


def register_handler(kind: NodeKind) -> Callable[[Type["NodeHandler"]], Type["NodeHandler"]]:
    """Decorator that registers the handler class for a node kind.

    Example:
        @register_handler(NodeKind.TRIGGER)
        class TriggerHandler(NodeHandler):
            async def run(self, node, config, payload, context): ...
    """
    def decorator(cls: Type["NodeHandler"]) -> Type["NodeHandler"]:
        _handlers[kind] = cls
        cls.kind = kind
        return cls
    return decorator


def get_handler(kind: Any) -> Optional[Type["NodeHandler"]]:
    """Handler class for a (possibly legacy) kind, or None when none is registered."""
    resolved = resolve_kind(kind)
    return _handlers.get(resolved) if resolved else None


def registered_kinds() -> List[NodeKind]:
    """Kinds that currently have a handler."""
    return list(_handlers)
