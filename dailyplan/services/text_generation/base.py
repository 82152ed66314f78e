"""Text generation service interface."""
from __future__ import annotations

from typing import Optional


class GenerationError(Exception):
    """A generation call failed; ``status`` carries the HTTP status when there was one."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class GeneratorNotConfigured(GenerationError):
    """No credentials are available for the generation provider."""


class TextGenerator:
    """Base interface for generative text providers."""

    def generate(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        json_mode: bool = True,
        timeout: Optional[float] = None,
    ) -> str:
        raise NotImplementedError
