"""Text generation through Mirascope.

``MirascopeTextGenerator`` satisfies the ``TextGenerator`` contract with an
OpenAI-compatible chat completion. Pass a configured ``AsyncOpenAI`` client
to target another OpenAI-compatible endpoint (for example Gemini's).

Example:
    ```python
    generator = MirascopeTextGenerator()
    response = await generator.generate(
        TextGenerationRequest(prompt="Write a haiku", model=ModelConfig.for_model("gpt-4o-mini"))
    )
    ```
"""

from typing import List, Optional
from mirascope.core import BaseMessageParam, openai
from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential

from contentflow.core.logging import LogComponent, get_logger
from contentflow.core.tools.base import TextGenerationRequest, TextGenerationResponse

logger = get_logger(LogComponent.TOOLS)


def build_messages(request: TextGenerationRequest) -> List[BaseMessageParam]:
    """System message (if any) followed by the prompt as the user turn."""
    messages = []
    if request.system:
        messages.append(BaseMessageParam(role="system", content=request.system))
    messages.append(BaseMessageParam(role="user", content=request.prompt))
    return messages


class MirascopeTextGenerator:
    """Chat-completion backed text generator.

    Attributes:
        client: OpenAI-compatible async client; Mirascope builds a default one if None
        model: If set, overrides the model named in each request
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client
        self.model = model

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        reraise=True,
    )
    async def _complete(self, model: str, messages: List[BaseMessageParam]) -> str:
        @openai.call(model, client=self.client)
        async def completion() -> List[BaseMessageParam]:
            return messages

        response = await completion()
        return response.content

    async def generate(self, request: TextGenerationRequest) -> TextGenerationResponse:
        model = self.model or request.model.model
        logger.tool(f"🤖 Generating text with {model} ({len(request.prompt)} prompt chars)")
        text = await self._complete(model, build_messages(request))
        return TextGenerationResponse(text=text)
