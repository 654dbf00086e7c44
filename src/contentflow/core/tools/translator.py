"""Translation on top of a text generator."""

from contentflow.core.config import DEFAULT_AI_MODEL
from contentflow.core.logging import LogComponent, get_logger
from contentflow.core.tools.base import (
    ModelConfig,
    TextGenerationRequest,
    TextGenerator,
    TranslationRequest,
    TranslationResponse,
)

logger = get_logger(LogComponent.TOOLS)

LANGUAGE_NAMES = {
    "ar": "Arabic",
    "de": "German",
    "en": "English",
    "es": "Spanish",
    "fa": "Persian",
    "fr": "French",
    "he": "Hebrew",
    "it": "Italian",
    "ja": "Japanese",
    "pt": "Portuguese",
    "ru": "Russian",
    "ur": "Urdu",
    "zh": "Chinese",
}

TRANSLATION_SYSTEM = (
    "You are a professional translator. Preserve markdown formatting, links and names. "
    "Reply with the translation only."
)


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code.lower(), code)


class LLMTranslator:
    """``Translator`` that asks a language model for the translation."""

    def __init__(self, text_generator: TextGenerator, model: str = DEFAULT_AI_MODEL):
        self.text_generator = text_generator
        self.model = model

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        language = language_name(request.target_language)
        logger.tool(f"🌍 Translating {len(request.content)} chars to {language}")
        response = await self.text_generator.generate(
            TextGenerationRequest(
                prompt=f"Translate the following text to {language}:\n\n{request.content}",
                model=ModelConfig.for_model(self.model),
                system=TRANSLATION_SYSTEM,
            )
        )
        return TranslationResponse(content=response.text.strip())
