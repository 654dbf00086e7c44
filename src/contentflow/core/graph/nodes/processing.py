"""Handlers for the processing kinds.

These nodes turn source material into an article (AI processor, multi-source
synthesizer), narrow item lists (filter), illustrate (image generator) or
translate. All of them write on top of the incoming payload.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field, field_validator

from contentflow.core.errors import CollaboratorError, MissingInputError
from contentflow.core.graph.nodes.base.node import NodeConfig, NodeContext, NodeHandler, NodeOutput, WorkflowNode
from contentflow.core.graph.nodes.payload import (
    ITEM_LIST_KEYS,
    collect_source_references,
    collect_sources,
    extract_source_content,
    fallback_slug,
    first_text,
    is_rtl,
    item_lists,
    parse_generated_article,
    slugify,
)
from contentflow.core.graph.registry import NodeKind, register_handler
from contentflow.core.graph.state import NodeStatus
from contentflow.core.logging import LogComponent, get_logger
from contentflow.core.tools.base import (
    ImageRequest,
    ImageResponse,
    ModelConfig,
    TextGenerationRequest,
    TextGenerationResponse,
    TranslationRequest,
    TranslationResponse,
)

logger = get_logger(LogComponent.NODES)

WORD_COUNT_GUIDES = {
    "short": "300-500 words",
    "medium": "500-800 words",
    "long": "800-1200 words",
    "extended": "1200+ words",
}

AUDIENCE_GUIDELINES = {
    "Experts": "Use technical terminology and assume deep knowledge of the subject.",
    "Beginners": "Explain concepts clearly and avoid jargon.",
    "Students": "Make content educational and easy to understand.",
}

STYLE_GUIDELINES = {
    "Academic": "Use formal language, citations, and structured arguments.",
    "Funny": "Use funny language like you are comedian.",
    "Conversational": "Use friendly, approachable language like talking to a friend.",
    "Technical": "Focus on precise, technical details and specifications.",
    "Creative": "Use engaging storytelling and creative elements.",
}

FOCUS_GUIDELINES = {
    "informative": "Focus on providing educational value and comprehensive information.",
    "practical": "Emphasize actionable advice and step-by-step guidance.",
    "analytical": "Provide deep analysis and critical thinking.",
}

ARTICLE_PROMPT = """You are an expert content writer. Create a {content_type} based on the following content and specifications.

**CONTENT SPECIFICATIONS:**
- Content Type: {content_type}
- Writing Style: {writing_style}
- Target Audience: {target_audience}
- Content Focus: {content_focus}
- Tone of Voice: {tone}
- Target Length: {length}
- Language: {language}
- Category: {category}
{extras}
**CUSTOM INSTRUCTIONS:**
{custom_instructions}

**CRITICAL FORMATTING RULES:**
- Start with a clear, engaging title as an H1 heading using # (not ** for bold)
- Use proper {output_format} formatting: # for main title, ## for sections, ### for subsections
- NO bold titles (**title**) - only use # Title format
- Create engaging, well-structured content suitable for publication
- Include relevant subheadings to organize the content (##, ###)
- Ensure the content matches the {writing_style} writing style
- Write for {target_audience} audience using {tone} tone
- Focus on {content_focus} approach
- The title should be descriptive and engaging, not generic

**TARGET AUDIENCE GUIDELINES:**
{audience_guideline}

**WRITING STYLE GUIDELINES:**
{style_guideline}

**CONTENT FOCUS GUIDELINES:**
{focus_guideline}

**Source Content to Transform:**
{source_content}

Generate the {content_type} now following all specifications above:"""

SYNTHESIS_PROMPT = """You are a research editor. Synthesize the sources below into one coherent {style} piece of {length}.
{attribution}{conflicts}{custom_instructions}
{sources}"""


class AIProcessorConfig(NodeConfig):
    content_type: str = "article"
    writing_style: str = "Professional"
    target_audience: str = "General readers"
    category: str = "General"
    custom_instructions: str = ""
    word_count: str = "medium"
    content_focus: str = "balanced"
    tone: str = "neutral"
    language: str = "en"
    output_format: str = "markdown"
    seo_optimized: bool = True
    include_citations: bool = False
    ai_model: Optional[str] = None


def build_article_prompt(config: AIProcessorConfig, source_content: str) -> str:
    """Render the article-writing prompt for one AI processor invocation."""
    extras = ""
    if config.seo_optimized:
        extras += "- SEO Optimized: Include SEO-friendly headings and structure\n"
    if config.include_citations:
        extras += "- Include Citations: Add source references where appropriate\n"
    return ARTICLE_PROMPT.format(
        content_type=config.content_type,
        writing_style=config.writing_style,
        target_audience=config.target_audience,
        content_focus=config.content_focus,
        tone=config.tone,
        length=WORD_COUNT_GUIDES.get(config.word_count, WORD_COUNT_GUIDES["medium"]),
        language=config.language,
        category=config.category,
        extras=extras,
        custom_instructions=config.custom_instructions or "No additional instructions provided.",
        output_format=config.output_format,
        audience_guideline=AUDIENCE_GUIDELINES.get(
            config.target_audience, "Write for a general audience with clear explanations."
        ),
        style_guideline=STYLE_GUIDELINES.get(config.writing_style, "Use professional but accessible language."),
        focus_guideline=FOCUS_GUIDELINES.get(
            config.content_focus, "Balance information, analysis, and practical insights."
        ),
        source_content=source_content,
    )


@register_handler(NodeKind.AI_CONTENT_PROCESSOR)
class AIContentProcessorHandler(NodeHandler):
    """Write a titled article from whatever content the payload carries.

    The generated markdown is split into ``title`` and a body without the
    title line. Source references from upstream are merged and deduplicated
    by url.
    """
    config_model = AIProcessorConfig

    async def run(self, node: WorkflowNode, config: AIProcessorConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        source_content = extract_source_content(payload)
        references = collect_source_references(payload)
        model = config.ai_model or context.config.default_ai_model
        length = WORD_COUNT_GUIDES.get(config.word_count, WORD_COUNT_GUIDES["medium"])

        request = TextGenerationRequest(
            prompt=build_article_prompt(config, source_content),
            model=ModelConfig.for_model(model),
        )
        response = await context.call(
            context.tool("text_generator").generate(request),
            "AI processing failed",
            response_model=TextGenerationResponse,
        )
        title, body = parse_generated_article(response.text)
        logger.debug(f"{node.label}: generated '{title}' ({len(body)} chars) with {model}")

        payload.update(
            title=title,
            content=body,
            processedContent=body,
            processedBy=f"AI Processor ({model})",
            source_references=references,
            category=config.category,
            contentType=config.content_type,
            writingStyle=config.writing_style,
            targetAudience=config.target_audience,
            contentFocus=config.content_focus,
            tone=config.tone,
            language=config.language,
            outputFormat=config.output_format,
            wordCountTarget=length,
            seoOptimized=config.seo_optimized,
            includeCitations=config.include_citations,
            aiModel=model,
            aiModelUsed=model,
            generatedAt=datetime.now().isoformat(),
            configurationUsed=config.model_dump(by_alias=True, exclude={"ai_model"}),
        )
        return NodeOutput(
            data=payload,
            message=(
                f'Content processed successfully with title: "{title}" using {config.writing_style} '
                f"style for {config.target_audience} audience ({length})"
            ),
        )


class SynthesizerConfig(NodeConfig):
    style: str = "comprehensive"
    target_length: str = "medium"
    maintain_attribution: bool = True
    resolve_conflicts: bool = True
    ai_model: Optional[str] = None
    custom_instructions: Optional[str] = None


@register_handler(NodeKind.MULTI_SOURCE_SYNTHESIZER)
class MultiSourceSynthesizerHandler(NodeHandler):
    config_model = SynthesizerConfig

    async def run(self, node: WorkflowNode, config: SynthesizerConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        sources = collect_sources(payload)
        if not sources:
            raise MissingInputError(
                "No content sources found. Connect this node to web scrapers, RSS feeds, "
                "news discovery, research tools, or other content sources",
                checked=ITEM_LIST_KEYS + ("research", "content"),
            )
        references = collect_source_references(payload)
        context.log(NodeStatus.RUNNING, f"Synthesizing content from {len(sources)} sources")

        rendered = "\n\n".join(
            f"[{index}] {source['title']}" + (f" ({source['url']})" if source["url"] else "") + f"\n{source['content']}"
            for index, source in enumerate(sources, start=1)
        )
        prompt = SYNTHESIS_PROMPT.format(
            style=config.style,
            length=WORD_COUNT_GUIDES.get(config.target_length, WORD_COUNT_GUIDES["medium"]),
            attribution="Attribute claims to their numbered source.\n" if config.maintain_attribution else "",
            conflicts="Where sources disagree, say so and reconcile them.\n" if config.resolve_conflicts else "",
            custom_instructions=f"{config.custom_instructions}\n" if config.custom_instructions else "",
            sources=rendered,
        )
        model = config.ai_model or context.config.default_ai_model
        response = await context.call(
            context.tool("text_generator").generate(
                TextGenerationRequest(prompt=prompt, model=ModelConfig.for_model(model))
            ),
            "Synthesis failed",
            response_model=TextGenerationResponse,
        )

        payload.update(
            synthesizedContent=response.text.strip(),
            sourceCount=len(sources),
            style=config.style,
            source_references=references,
        )
        return NodeOutput(
            data=payload,
            message=f"Synthesized content from {len(sources)} sources with {len(references)} source references",
        )


class FilterConfig(NodeConfig):
    keywords: List[str] = Field(default_factory=list)
    exclude_keywords: List[str] = Field(default_factory=list)
    min_length: int = Field(default=0, ge=0)
    max_items: Optional[int] = Field(default=None, gt=0)

    @field_validator("keywords", "exclude_keywords", mode="before")
    @classmethod
    def split_commas(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [word.strip() for word in value.split(",") if word.strip()]
        return value


def _item_text(item: Any) -> str:
    if isinstance(item, str):
        return item
    if not isinstance(item, dict):
        return ""
    return " ".join(
        str(item[key]) for key in ("title", "description", "content", "summary", "abstract") if item.get(key)
    )


@register_handler(NodeKind.CONTENT_FILTER)
class ContentFilterHandler(NodeHandler):
    """Keep list items that match the keywords and minimum length.

    Applies to every item list in the payload. Never fails.
    """
    config_model = FilterConfig

    def keep(self, config: FilterConfig, item: Any) -> bool:
        text = _item_text(item)
        lowered = text.lower()
        if len(text) < config.min_length:
            return False
        if config.keywords and not any(word.lower() in lowered for word in config.keywords):
            return False
        return not any(word.lower() in lowered for word in config.exclude_keywords)

    async def run(self, node: WorkflowNode, config: FilterConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        kept_total = 0
        removed = 0
        for key, items in list(item_lists(payload)):
            kept = [item for item in items if self.keep(config, item)]
            if config.max_items is not None:
                kept = kept[:config.max_items]
            removed += len(items) - len(kept)
            kept_total += len(kept)
            payload[key] = kept
        payload["filteredOut"] = removed
        return NodeOutput(data=payload, message=f"Kept {kept_total} items, filtered out {removed}")


class ImageGeneratorConfig(NodeConfig):
    image_prompt: str = ""
    custom_instructions: str = ""
    ai_model: str = "dall-e-3"
    image_style: str = "natural"
    image_size: str = "1024x1024"
    image_quality: str = "standard"


@register_handler(NodeKind.IMAGE_GENERATOR)
class ImageGeneratorHandler(NodeHandler):
    """Generate a featured image.

    The prompt comes from the node's ``imagePrompt``; without one the
    collaborator builds it from the article title and content.
    """
    config_model = ImageGeneratorConfig

    async def run(self, node: WorkflowNode, config: ImageGeneratorConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        explicit = config.image_prompt.strip()
        title = payload.get("title") if isinstance(payload.get("title"), str) else ""
        found = first_text(payload, ("processedContent", "synthesizedContent"))
        if explicit:
            source = f'user prompt: "{explicit[:50]}"'
        elif title:
            source = f'article title: "{title[:50]}"'
        else:
            source = "fallback prompt"

        request = ImageRequest(
            prompt=explicit,
            title=title,
            content=found[1] if found else "",
            custom_instructions=config.custom_instructions,
            style=config.image_style,
            size=config.image_size,
            quality=config.image_quality,
            model=config.ai_model,
            force_generate=bool(explicit),
        )
        context.log(NodeStatus.RUNNING, f"Generating image using {source}. Model: {config.ai_model}")
        response = await context.call(
            context.tool("image_generator").generate(request),
            "Image generation failed",
            response_model=ImageResponse,
        )

        payload.update(
            imageUrl=response.image_url,
            imagePrompt=response.prompt,
            imagePromptSource=source,
            imageStyle=config.image_style,
            imageSize=config.image_size,
            imageModelUsed=config.ai_model,
            wasImageReused=response.was_reused,
            imageFileName=response.file_name,
            forcedGeneration=request.force_generate,
            wasAIGenerated=response.was_ai_generated,
            generatedWith=response.generated_with,
        )
        if response.was_ai_generated:
            message = f"New AI image generated with {response.generated_with}: {response.file_name}"
        else:
            message = f"Placeholder image used ({response.generated_with}): {response.file_name}"
        return NodeOutput(data=payload, message=message)


class TranslatorConfig(NodeConfig):
    target_language: str = "es"
    provider: str = "gemini"

    @field_validator("target_language")
    @classmethod
    def require_language(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("No target language configured")
        return value.strip().lower()


@register_handler(NodeKind.TRANSLATOR)
class TranslatorHandler(NodeHandler):
    """Translate the article body and title.

    A failed body translation fails the node. A failed title translation
    keeps the original title. The slugs always come from the original title
    so published URLs stay ASCII.
    """
    config_model = TranslatorConfig

    async def run(self, node: WorkflowNode, config: TranslatorConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        found = first_text(payload, ("processedContent", "synthesizedContent", "content"))
        body = found[1] if found else ""
        title = payload.get("title") if isinstance(payload.get("title"), str) else ""
        if not body and not title:
            raise MissingInputError(
                "No content found to translate",
                checked=("processedContent", "synthesizedContent", "content", "title"),
            )

        translator = context.tool("translator")
        language = config.target_language
        context.log(
            NodeStatus.RUNNING,
            f"Translating to {language} using {config.provider}. Content: {len(body)} chars, Title: {len(title)} chars",
        )

        translated_body = body
        if body:
            response = await context.call(
                translator.translate(TranslationRequest(content=body, target_language=language, provider=config.provider)),
                "Content translation failed",
                response_model=TranslationResponse,
            )
            if not response.content.strip():
                raise CollaboratorError("Translation service returned empty content")
            translated_body = response.content

        translated_title = title
        if title:
            try:
                response = await context.call(
                    translator.translate(TranslationRequest(content=title, target_language=language, provider=config.provider)),
                    "Title translation failed",
                    response_model=TranslationResponse,
                )
            except CollaboratorError as e:
                logger.warning(f"{node.label}: {e}; keeping original title")
            else:
                if response.content.strip():
                    translated_title = response.content.strip()
                else:
                    logger.warning(f"{node.label}: title translation returned empty, keeping original title")

        slug = slugify(title or "translated-article")
        if len(slug) < 3:
            slug = fallback_slug(language)

        payload.update(
            title=translated_title,
            processedContent=translated_body,
            translatedContent=translated_body,
            translatedTitle=translated_title,
            slug=slug,
            englishSlug=slug,
            targetLanguage=language,
            isRTL=is_rtl(language),
            originalContent=body,
            originalTitle=title,
        )
        return NodeOutput(
            data=payload,
            message=f'Translated to {language}. Title: "{translated_title[:50]}" ({len(translated_body)} chars)',
        )
