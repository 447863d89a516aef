"""Pydantic models for the chat-completions payloads used during extraction."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ChatMessage(ChatBaseModel):
    role: Literal["system", "user", "assistant", "tool"]
    content: str | None = None


class ResponseFormat(ChatBaseModel):
    type: Literal["json_object", "text"] = "json_object"


class ChatCompletionRequest(ChatBaseModel):
    model: str
    messages: list[ChatMessage]
    temperature: float = 0.0
    response_format: ResponseFormat = Field(default_factory=ResponseFormat)


class ChatChoice(ChatBaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str | None = None


class ChatCompletionResponse(ChatBaseModel):
    id: str | None = None
    model: str | None = None
    choices: list[ChatChoice]

    @property
    def first_content(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].message.content


class ErrorDetail(ChatBaseModel):
    message: str
    type: str | None = None
    code: str | int | None = None


class ErrorResponse(ChatBaseModel):
    error: ErrorDetail
