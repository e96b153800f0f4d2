"""Prompt contracts and rendering for the row generator."""

from .builder import build_prompt
from .contracts import (
    GeneratorPromptInput,
    Style,
)

__all__ = [
    "build_prompt",
    "GeneratorPromptInput",
    "Style",
]
