"""
Text generation backed by Google Gemini.

The model is a TRANSLATOR, not an ORACLE: it turns a chat message into
JSON and nothing it returns is trusted until the extraction pipeline has
validated it.

DESIGN DECISION: Callers depend on ``TextGenerator`` (prompt in, text out),
never on the Gemini SDK directly. Tests swap in a stub generator.
"""

from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai

from expensetracker.config import GeminiSettings, get_settings


class TextGenerator(ABC):
    """Prompt-in, text-out capability."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Run one prompt and return the raw response text.

        Raises whatever the underlying client raises; callers classify it.
        """
        pass


class GeminiTextGenerator(TextGenerator):
    """
    Gemini implementation of TextGenerator.

    Single shot: no retry and no streaming. Every call carries a request
    timeout so a stalled upstream cannot hang the request.
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @property
    def model_name(self) -> str:
        return self._settings.model_name

    async def generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(
            prompt,
            request_options={"timeout": self._settings.request_timeout_seconds},
        )
        try:
            return response.text or ""
        except ValueError:
            # Blocked or empty candidates: the SDK raises instead of returning ""
            return ""


def available_models(settings: Optional[GeminiSettings] = None) -> list[str]:
    """
    List model names that support ``generateContent`` for the configured key.

    Used by the settings page to check the key and pick a model name.
    """
    settings = settings or get_settings().gemini
    genai.configure(api_key=settings.api_key)
    return [
        model.name
        for model in genai.list_models()
        if "generateContent" in getattr(model, "supported_generation_methods", [])
    ]
