"""Handlers for the output kinds: publish, post to social media, notify by email."""

from typing import Any, Dict, Optional
from pydantic import Field, field_validator

from contentflow.core.errors import CollaboratorError, MissingInputError
from contentflow.core.graph.nodes.base.node import NodeConfig, NodeContext, NodeHandler, NodeOutput, WorkflowNode
from contentflow.core.graph.nodes.payload import (
    ARTICLE_BODY_KEYS,
    collect_source_references,
    first_text,
    render_template,
    require_text,
    slugify,
)
from contentflow.core.graph.registry import NodeKind, register_handler
from contentflow.core.graph.state import NodeStatus
from contentflow.core.tools.base import (
    EmailRequest,
    EmailResponse,
    PublishedArticle,
    PublishRequest,
    SocialPostRequest,
    SocialPostResponse,
)


class PublisherConfig(NodeConfig):
    status: str = "draft"
    category: Optional[str] = None
    reporter_id: Optional[str] = None


@register_handler(NodeKind.PUBLISHER)
class PublisherHandler(NodeHandler):
    """Create the article through the article publisher.

    The slug prefers ``englishSlug`` (set by a translator), then ``slug``,
    then one derived from the title.
    """
    config_model = PublisherConfig

    async def run(self, node: WorkflowNode, config: PublisherConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        _, content = require_text(
            payload,
            ARTICLE_BODY_KEYS,
            "No processed content to publish. Connect this node to an AI Processor that generates structured content",
        )
        title = payload.get("title") or "Untitled Article"
        slug = payload.get("englishSlug") or payload.get("slug") or slugify(title)
        image_url = payload.get("imageUrl")
        references = collect_source_references(payload)

        context.log(
            NodeStatus.RUNNING,
            f'Publishing article: "{title}" with slug: {slug}'
            + (" (with featured image)" if image_url else "")
            + f" and {len(references)} sources",
        )
        request = PublishRequest(
            content=content,
            title=title,
            slug=slug,
            image_url=image_url,
            category=config.category or payload.get("category") or "AI Generated",
            status=config.status,
            provider=payload.get("aiModel") or "AI Processor",
            reporter_id=config.reporter_id,
            is_rtl=bool(payload.get("isRTL")),
            target_language=payload.get("targetLanguage") or "en",
            source_references=references,
        )
        article = await context.call(
            context.tool("publisher").publish(request),
            "Publishing failed",
            response_model=PublishedArticle,
        )

        payload.update(
            articleId=article.id,
            title=article.title,
            slug=article.slug,
            status=article.status,
            imageUrl=image_url,
            url=article.url or f"/articles/{article.slug}",
            source_references=references,
        )
        return NodeOutput(data=payload, message=f'Article published: "{article.title}" ({article.status})')


class SocialPosterConfig(NodeConfig):
    platform: str = "facebook"
    message: Optional[str] = None
    account_id: Optional[str] = None

    @field_validator("platform")
    @classmethod
    def require_platform(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("No social platform configured")
        return value.strip().lower()


@register_handler(NodeKind.SOCIAL_POSTER)
class SocialPosterHandler(NodeHandler):
    config_model = SocialPosterConfig

    async def run(self, node: WorkflowNode, config: SocialPosterConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        if config.message:
            text = render_template(config.message, payload)
        else:
            found = first_text(payload, ("title", "processedContent"))
            if found is None:
                raise MissingInputError("Nothing to post", checked=("title", "processedContent"))
            text = found[1] if found[0] == "title" else found[1][:280]

        request = SocialPostRequest(
            platform=config.platform,
            message=text,
            image_url=payload.get("imageUrl"),
            link=payload.get("url"),
            account_id=config.account_id,
        )
        response = await context.call(
            context.tool("social_poster").post(request),
            f"Posting to {config.platform} failed",
            response_model=SocialPostResponse,
        )
        payload["socialPost"] = {"platform": config.platform, "postId": response.post_id, "url": response.url}
        return NodeOutput(data=payload, message=f"Posted to {config.platform} ({response.post_id})")


class EmailNotifierConfig(NodeConfig):
    recipient: str = Field(default="", validate_default=True)
    subject: str = "New Article: {{article.title}}"
    body: str = "A new article has been published. Read it here: {{article.url}}"

    @field_validator("recipient")
    @classmethod
    def require_recipient(cls, value: str) -> str:
        if not value or "@" not in value:
            raise ValueError("No valid recipient configured for email notification")
        return value.strip()


@register_handler(NodeKind.EMAIL_NOTIFIER)
class EmailNotifierHandler(NodeHandler):
    """Send the templated notification. ``{{article.<key>}}`` reads from the payload."""
    config_model = EmailNotifierConfig

    async def run(self, node: WorkflowNode, config: EmailNotifierConfig, payload: Dict[str, Any], context: NodeContext) -> NodeOutput:
        subject = render_template(config.subject, payload)
        body = render_template(config.body, payload)
        response = await context.call(
            context.tool("notifier").send(EmailRequest(recipient=config.recipient, subject=subject, body=body)),
            f"Email to {config.recipient} failed",
            response_model=EmailResponse,
        )
        if not response.delivered:
            raise CollaboratorError(f"Email to {config.recipient} was not delivered")
        payload["emailNotification"] = {"recipient": config.recipient, "subject": subject, "delivered": True}
        return NodeOutput(data=payload, message=f"Email sent to {config.recipient}")
