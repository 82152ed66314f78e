"""Text generation provider factory."""
from __future__ import annotations

from functools import lru_cache

import openai

from dailyplan.core.config import settings
from dailyplan.services.text_generation.base import TextGenerator
from dailyplan.services.text_generation.openai_client import OpenAITextGenerator


@lru_cache
def get_text_generator() -> TextGenerator:
    client = openai.OpenAI(api_key=settings.openai_api_key) if settings.openai_api_key else None
    return OpenAITextGenerator(
        client,
        model=settings.openai_model,
        temperature=settings.openai_temperature,
        max_tokens=settings.openai_max_tokens,
        timeout=settings.openai_timeout_seconds,
    )
