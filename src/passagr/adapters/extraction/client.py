"""OpenAI-compatible chat-completions client used as the extraction model."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import httpx
from pydantic import ValidationError

from passagr.adapters.http_resilience import ResilientClient
from passagr.config import ExtractionConfig, get_extraction_config
from passagr.domain.errors import ExtractionFailure

from .schema import ChatCompletionRequest, ChatCompletionResponse, ChatMessage, ErrorResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from passagr.config import ResilienceConfig
    from passagr.domain.model import EntityType

log = getLogger(__name__)

SYSTEM_PROMPT: Final[str] = (
    "You are a helpful assistant that extracts structured data from text. "
    "Respond with only JSON."
)

USER_PROMPT_TEMPLATE: Final[str] = """\
You are an expert data extraction agent. Extract information from the provided text \
and format it into a JSON object.
Only extract what is explicitly present in the text. Do not infer or invent any facts.
If a field's value is not found, set it to null or an empty array.
Your output must be a single JSON object matching the schema provided.

Schema for {entity_type}: {schema}
Text content: {text}
Source URL: {source_url}
"""


def build_prompt(
    *, entity_type: EntityType, skeleton: Mapping[str, Any], text: str, source_url: str
) -> str:
    return USER_PROMPT_TEMPLATE.format(
        entity_type=entity_type.value,
        schema=json.dumps(skeleton, indent=2),
        text=text,
        source_url=source_url,
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class ChatCompletionExtractionModel:
    """Extraction model backed by a ``/chat/completions`` endpoint in JSON mode."""

    config: ExtractionConfig = field(default_factory=get_extraction_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __call__(
        self,
        *,
        entity_type: EntityType,
        skeleton: Mapping[str, Any],
        text: str,
        source_url: str,
    ) -> object:
        request = ChatCompletionRequest(
            model=self.config.model,
            temperature=self.config.temperature,
            messages=[
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(
                    role="user",
                    content=build_prompt(
                        entity_type=entity_type,
                        skeleton=skeleton,
                        text=text,
                        source_url=source_url,
                    ),
                ),
            ],
        )
        return asyncio.run(self._complete(request))

    async def _complete(self, request: ChatCompletionRequest) -> object:
        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.post(
                    "chat/completions", json=request.model_dump(mode="json")
                )
            except httpx.HTTPError as exc:
                raise ExtractionFailure(f"Extraction request failed: {exc}") from exc

        if response.is_error:
            raise ExtractionFailure(_error_message(response))

        try:
            completion = ChatCompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ExtractionFailure(f"Malformed chat completion payload: {exc}") from exc

        content = completion.first_content
        if not content:
            raise ExtractionFailure("Chat completion returned no content")
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ExtractionFailure(f"Model output is not valid JSON: {exc}") from exc
        log.debug("Extraction model %s returned %s keys", completion.model, _key_count(payload))
        return payload


def _error_message(response: httpx.Response) -> str:
    try:
        error = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return f"Extraction API returned HTTP {response.status_code}"
    return f"Extraction API returned HTTP {response.status_code}: {error.error.message}"


def _key_count(payload: object) -> int:
    return len(payload) if isinstance(payload, dict) else 0
