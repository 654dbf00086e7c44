"""Collaborator contracts and reference adapters."""

from contentflow.core.tools.base import Toolbox
from contentflow.core.tools.image_generator import OpenAIImageGenerator
from contentflow.core.tools.structure_validator import ArticleStructureValidator
from contentflow.core.tools.text_generator import MirascopeTextGenerator
from contentflow.core.tools.translator import LLMTranslator

__all__ = [
    "Toolbox",
    "MirascopeTextGenerator",
    "LLMTranslator",
    "OpenAIImageGenerator",
    "ArticleStructureValidator",
]
