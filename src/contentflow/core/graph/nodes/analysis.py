"""Handlers for the analysis kinds.

The quality analyzer, SEO optimizer, engagement forecaster and performance
analyzer kinds have no handler: the executor passes their input through.
"""

from typing import Any, Dict, List, Optional
from pydantic import Field

from contentflow.core.errors import MissingInputError
from contentflow.core.graph.nodes.base.node import NodeConfig, NodeContext, NodeHandler, NodeOutput, WorkflowNode
from contentflow.core.graph.nodes.payload import ARTICLE_BODY_KEYS, first_text, require_text
from contentflow.core.graph.registry import NodeKind, register_handler
from contentflow.core.graph.state import NodeStatus
from contentflow.core.tools.base import SeoRequest, SeoResponse, StructureReport, StructureRequest

SEO_CONTENT_KEYS = ARTICLE_BODY_KEYS + ("translatedContent", "scrapedContent", "content")


def _seo_content(payload: Dict[str, Any]) -> str:
    found = first_text(payload, ARTICLE_BODY_KEYS + ("translatedContent",))
    if found:
        return found[1]
    scraped = payload.get("scrapedContent")
    if isinstance(scraped, list):
        joined = "\n\n".join(str(item.get("content") or "") for item in scraped if isinstance(item, dict))
        if joined.strip():
            return joined
    content = payload.get("content")
    return content if isinstance(content, str) else ""


class SeoAnalyzerConfig(NodeConfig):
    ai_model: Optional[str] = None
    custom_instructions: Optional[str] = None
    target_keywords: Optional[str] = None
    analysis_focus: str = "comprehensive"


@register_handler(NodeKind.SEO_ANALYZER)
class SeoAnalyzerHandler(NodeHandler):
    config_model = SeoAnalyzerConfig

    async def run(self, node: WorkflowNode, config: SeoAnalyzerConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        content = _seo_content(payload)
        if len(content.strip()) < 10:
            raise MissingInputError(
                "No content to analyze for SEO. Connect this node to content sources",
                checked=SEO_CONTENT_KEYS,
            )
        context.log(NodeStatus.RUNNING, f"Analyzing SEO for content ({len(content)} characters)")

        request = SeoRequest(
            content=content,
            title=payload.get("title") or "Untitled",
            model=config.ai_model or context.config.default_ai_model,
            target_keywords=config.target_keywords,
            analysis_focus=config.analysis_focus,
            custom_instructions=config.custom_instructions,
        )
        response = await context.call(
            context.tool("seo_analyzer").analyze(request),
            "SEO analysis failed",
            response_model=SeoResponse,
        )
        score = response.analysis.get("seo_score")
        payload.update(
            seoAnalysis=response.analysis,
            seoScore=score,
            seoSuggestions=response.analysis.get("improvements", []),
        )
        return NodeOutput(data=payload, message=f"SEO analysis completed. Score: {score}/100")


class StructureValidatorConfig(NodeConfig):
    validation_level: str = "standard"
    min_word_count: int = Field(default=300, ge=0)
    require_conclusion: bool = True


def _rating(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    return "needs improvement"


@register_handler(NodeKind.STRUCTURE_VALIDATOR)
class StructureValidatorHandler(NodeHandler):
    """Score the article's structure.

    Each issue the validator reports is written to the trace as its own
    ``error`` entry; the node itself still completes so downstream nodes can
    decide what to do with ``isValid``.
    """
    config_model = StructureValidatorConfig

    async def run(self, node: WorkflowNode, config: StructureValidatorConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        _, content = require_text(
            payload, ARTICLE_BODY_KEYS, "No content to validate. Connect this node to a content processor"
        )
        request = StructureRequest(
            content=content,
            min_word_count=config.min_word_count,
            require_conclusion=config.require_conclusion,
        )
        report: StructureReport = await context.call(
            context.tool("structure_validator").validate(request),
            "Structure validation failed",
            response_model=StructureReport,
        )
        for issue in report.issues:
            context.log(NodeStatus.ERROR, f"Issue: {issue}")

        payload.update(
            validation=report.model_dump(by_alias=True, mode="json"),
            qualityScore=report.score,
            isValid=report.is_valid,
        )
        issues: List[str] = report.issues
        return NodeOutput(
            data=payload,
            message=f"Article validation {_rating(report.score)} ({report.score}/100). {len(issues)} issues found.",
        )
