"""Public interface for the extraction model adapter."""

from __future__ import annotations

from .client import ChatCompletionExtractionModel, build_prompt
from .schema import ChatCompletionRequest, ChatCompletionResponse

__all__ = [
    "ChatCompletionExtractionModel",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "build_prompt",
]
