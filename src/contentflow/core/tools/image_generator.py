"""Image generation with OpenAI's image models.

``OpenAIImageGenerator`` satisfies the ``ImageGenerator`` contract. The
prompt is the request's explicit prompt when there is one, otherwise it is
built from the article title and the start of its content.

Example:
    ```python
    generator = OpenAIImageGenerator()
    image = await generator.generate(ImageRequest(title="The future of solar power"))
    image.image_url
    ```
"""

from typing import Optional
from openai import AsyncOpenAI

from contentflow.core.logging import LogComponent, get_logger
from contentflow.core.tools.base import ImageRequest, ImageResponse

logger = get_logger(LogComponent.TOOLS)

FALLBACK_PROMPT = "A modern, professional editorial illustration"
OPENAI_STYLES = {"natural", "vivid"}


def build_image_prompt(request: ImageRequest) -> str:
    """Explicit prompt first, then the title (with a content excerpt), then a generic fallback."""
    if request.prompt.strip():
        prompt = request.prompt.strip()
    elif request.title.strip():
        prompt = f'Editorial illustration for an article titled "{request.title.strip()}"'
        excerpt = " ".join(request.content.split())[:200]
        if excerpt:
            prompt += f". Context: {excerpt}"
    else:
        prompt = FALLBACK_PROMPT
    if request.custom_instructions.strip():
        prompt += f". {request.custom_instructions.strip()}"
    return prompt


class OpenAIImageGenerator:
    """Generate images through ``client.images.generate``.

    Attributes:
        client: Async OpenAI client; created on first use if not given
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI()  # Uses API key from environment
        return self._client

    async def generate(self, request: ImageRequest) -> ImageResponse:
        prompt = build_image_prompt(request)
        logger.tool(f"🎨 Generating image: {prompt[:100]}")
        options = {"style": request.style} if request.style in OPENAI_STYLES else {}
        try:
            response = await self.client.images.generate(
                model=request.model,
                prompt=prompt,
                size=request.size,
                quality=request.quality,
                n=1,
                **options,
            )
        except Exception as e:
            logger.error(f"❌ Image generation failed: {e}")
            raise

        image_url = response.data[0].url
        logger.tool(f"✨ Generated image: {image_url}")
        return ImageResponse(
            image_url=image_url,
            prompt=prompt,
            was_reused=False,
            was_ai_generated=True,
            generated_with=f"OpenAI {request.model}",
            file_name=image_url.split("?", 1)[0].rsplit("/", 1)[-1] or "unknown",
        )
