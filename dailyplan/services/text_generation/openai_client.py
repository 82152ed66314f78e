"""OpenAI chat-completions provider."""
from __future__ import annotations

import logging
from typing import Optional

import openai

from dailyplan.services.text_generation.base import GenerationError, GeneratorNotConfigured, TextGenerator

logger = logging.getLogger(__name__)


class OpenAITextGenerator(TextGenerator):
    """Issue one chat completion per call against an injected OpenAI client."""

    def __init__(
        self,
        client: Optional[openai.OpenAI],
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: Optional[float] = None,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def generate(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        json_mode: bool = True,
        timeout: Optional[float] = None,
    ) -> str:
        if self.client is None:
            raise GeneratorNotConfigured("OPENAI_API_KEY missing; advisory service not configured.")

        request_timeout = timeout if timeout is not None else self.timeout
        client = self.client.with_options(timeout=request_timeout) if request_timeout is not None else self.client
        kwargs = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_prompt},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = client.chat.completions.create(**kwargs)
        except openai.APIStatusError as exc:
            logger.warning("OpenAI returned status %s: %s", exc.status_code, exc.message)
            raise GenerationError(exc.message, status=exc.status_code) from exc
        except openai.APIConnectionError as exc:
            # Also covers APITimeoutError.
            logger.warning("OpenAI transport failure: %s", exc)
            raise GenerationError(str(exc) or exc.__class__.__name__) from exc

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
