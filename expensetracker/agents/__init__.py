"""AI Agents package."""

from expensetracker.agents.gemini import GeminiTextGenerator, TextGenerator, available_models

__all__ = [
    "GeminiTextGenerator",
    "TextGenerator",
    "available_models",
]
