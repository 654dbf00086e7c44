"""Tests for the collaborator adapters: text generation, translation, image
generation and the toolbox."""

from types import SimpleNamespace

import pytest

from contentflow.core.errors import CollaboratorError
from contentflow.core.tools import LLMTranslator, MirascopeTextGenerator, OpenAIImageGenerator, Toolbox
from contentflow.core.tools.base import (
    ImageRequest,
    ModelConfig,
    TextGenerationRequest,
    TextGenerationResponse,
    TranslationRequest,
)
from contentflow.core.tools.image_generator import FALLBACK_PROMPT, build_image_prompt
from contentflow.core.tools.text_generator import build_messages
from contentflow.core.tools.translator import TRANSLATION_SYSTEM, language_name


class RecordingGenerator:
    """TextGenerator that returns a canned reply."""

    def __init__(self, reply: str):
        self.reply = reply
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        return TextGenerationResponse(text=self.reply)


class FakeImages:
    def __init__(self, url: str = "https://cdn.example/images/abc123.png?sig=1", error: Exception = None):
        self.url = url
        self.error = error
        self.calls = []

    async def generate(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(data=[SimpleNamespace(url=self.url)])


class TestModelConfig:
    """Test suite for provider detection."""

    @pytest.mark.parametrize("model,provider", [
        ("gpt-4o", "OpenAI"),
        ("claude-3-5-sonnet", "Anthropic"),
        ("gemini-2.5-flash-preview-05-20", "Google"),
    ])
    def test_for_model(self, model, provider):
        assert ModelConfig.for_model(model).provider == provider


class TestTextGenerator:
    """Test suite for the Mirascope text generator."""

    def test_build_messages(self):
        """The system prompt comes first when present."""
        request = TextGenerationRequest(prompt="Write", model=ModelConfig.for_model("gpt-4o"), system="Be brief")
        messages = build_messages(request)

        assert [(m.role, m.content) for m in messages] == [("system", "Be brief"), ("user", "Write")]

    def test_build_messages_without_system(self):
        request = TextGenerationRequest(prompt="Write", model=ModelConfig.for_model("gpt-4o"))
        assert [m.role for m in build_messages(request)] == ["user"]

    @pytest.mark.asyncio
    async def test_generate_uses_override_model(self):
        """A generator-level model overrides the request's model."""
        generator = MirascopeTextGenerator(model="gpt-4o-mini")
        seen = {}

        async def complete(model, messages):
            seen["model"] = model
            seen["messages"] = messages
            return "generated"

        generator._complete = complete
        response = await generator.generate(
            TextGenerationRequest(prompt="Write", model=ModelConfig.for_model("gpt-4o"))
        )

        assert response.text == "generated"
        assert seen["model"] == "gpt-4o-mini"
        assert seen["messages"][-1].content == "Write"


class TestLLMTranslator:
    """Test suite for the language-model translator."""

    def test_language_names(self):
        assert language_name("ES") == "Spanish"
        assert language_name("xx") == "xx"

    @pytest.mark.asyncio
    async def test_translate(self):
        """The prompt names the language and the reply is stripped."""
        generator = RecordingGenerator("  Hola Mundo \n")
        translator = LLMTranslator(generator, model="gpt-4o")
        response = await translator.translate(TranslationRequest(content="Hello World", target_language="es"))

        assert response.content == "Hola Mundo"
        (request,) = generator.requests
        assert request.prompt == "Translate the following text to Spanish:\n\nHello World"
        assert request.system == TRANSLATION_SYSTEM
        assert request.model.model == "gpt-4o"


class TestImageGenerator:
    """Test suite for the OpenAI image generator."""

    def test_prompt_precedence(self):
        """Explicit prompt, then title with excerpt, then the fallback."""
        assert build_image_prompt(ImageRequest(prompt=" A cat ", title="Ignored")) == "A cat"
        assert build_image_prompt(ImageRequest(title="Solar", content="Panels\n on roofs")) == (
            'Editorial illustration for an article titled "Solar". Context: Panels on roofs'
        )
        assert build_image_prompt(ImageRequest()) == FALLBACK_PROMPT
        assert build_image_prompt(ImageRequest(custom_instructions="flat colors")) == f"{FALLBACK_PROMPT}. flat colors"

    @pytest.mark.asyncio
    async def test_generate(self):
        """The OpenAI client is called once and the file name comes from the URL."""
        images = FakeImages()
        generator = OpenAIImageGenerator(client=SimpleNamespace(images=images))
        response = await generator.generate(ImageRequest(prompt="A cat", style="vivid", size="1792x1024"))

        (call,) = images.calls
        assert call == {
            "model": "dall-e-3",
            "prompt": "A cat",
            "size": "1792x1024",
            "quality": "standard",
            "n": 1,
            "style": "vivid",
        }
        assert response.image_url == "https://cdn.example/images/abc123.png?sig=1"
        assert response.file_name == "abc123.png"
        assert response.generated_with == "OpenAI dall-e-3"
        assert response.was_ai_generated is True

    @pytest.mark.asyncio
    async def test_unsupported_style_not_sent(self):
        """Styles the API does not know are left out of the call."""
        images = FakeImages()
        generator = OpenAIImageGenerator(client=SimpleNamespace(images=images))
        await generator.generate(ImageRequest(prompt="A cat", style="watercolor"))
        assert "style" not in images.calls[0]

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        """API failures are re-raised for the node to report."""
        generator = OpenAIImageGenerator(client=SimpleNamespace(images=FakeImages(error=RuntimeError("rate limited"))))
        with pytest.raises(RuntimeError, match="rate limited"):
            await generator.generate(ImageRequest(prompt="A cat"))


class TestToolbox:
    """Test suite for the toolbox."""

    def test_require(self):
        generator = RecordingGenerator("x")
        toolbox = Toolbox(text_generator=generator)
        assert toolbox.require("text_generator") is generator

    def test_require_missing(self):
        with pytest.raises(CollaboratorError, match="No image generator collaborator configured"):
            Toolbox().require("image_generator")
