"""
Structured extraction over the Anthropic Messages API.

The model is forced to call a single tool whose input schema is generated
from a pydantic model, so the tool input is the structured result.
"""
import logging
from typing import Any, Protocol

import anthropic
from pydantic import BaseModel

import config

logger = logging.getLogger(__name__)

RESULT_TOOL_NAME = "record_result"


class ExtractionError(Exception):
    """Unclassified failure of the extraction service."""


class ExtractionAuthError(ExtractionError):
    pass


class ExtractionNetworkError(ExtractionError):
    pass


class ExtractionRateLimitError(ExtractionError):
    pass


class ExtractionTimeoutError(ExtractionError):
    pass


class StructuredExtractor(Protocol):
    async def extract(self, prompt: str, schema: type[BaseModel]) -> dict[str, Any]:
        ...


def classify_error(exc: Exception) -> ExtractionError:
    """Map an SDK exception onto the extraction error taxonomy."""
    message = str(exc)
    # APITimeoutError subclasses APIConnectionError, so it goes first
    if isinstance(exc, anthropic.APITimeoutError):
        return ExtractionTimeoutError(message)
    if isinstance(exc, anthropic.APIConnectionError):
        return ExtractionNetworkError(message)
    if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return ExtractionAuthError(message)
    if isinstance(exc, anthropic.RateLimitError):
        return ExtractionRateLimitError(message)

    lowered = message.lower()
    if "rate limit" in lowered or "quota" in lowered:
        return ExtractionRateLimitError(message)
    if "timeout" in lowered:
        return ExtractionTimeoutError(message)
    return ExtractionError(message)


class AnthropicExtractor:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key
        self.model = model or config.ANTHROPIC_MODEL
        self.max_tokens = max_tokens or config.ANTHROPIC_MAX_TOKENS
        self.timeout = timeout or config.ANTHROPIC_TIMEOUT
        self._client = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        # Created on first use so a missing key is reported by the route, not here
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def extract(self, prompt: str, schema: type[BaseModel]) -> dict[str, Any]:
        tool = {
            "name": RESULT_TOOL_NAME,
            "description": f"Record the extracted {schema.__name__}.",
            "input_schema": schema.model_json_schema(),
        }

        logger.info("Calling %s for %s extraction", self.model, schema.__name__)
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                tools=[tool],
                tool_choice={"type": "tool", "name": RESULT_TOOL_NAME},
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as e:
            error = classify_error(e)
            logger.warning("Extraction failed (%s): %s", type(error).__name__, e)
            raise error from e

        for block in response.content:
            if block.type == "tool_use" and block.name == RESULT_TOOL_NAME:
                return dict(block.input)

        raise ExtractionError("AI 응답에서 구조화된 결과를 찾을 수 없습니다.")
