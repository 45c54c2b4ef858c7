"""Anthropic messages API client."""

import json
import logging

import httpx

from llm_diagrams.errors import (
    APIError,
    MalformedResponseError,
    ProviderTimeoutError,
    RequestEncodingError,
    TransportError,
)
from llm_diagrams.providers.base import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
API_VERSION = "2023-06-01"
MODEL_CLAUDE_35_SONNET = "claude-3-5-sonnet-20241022"
MODEL_CLAUDE_35_HAIKU = "claude-3-5-haiku-20241022"


class AnthropicClient:
    """Stateless per call; holds the credential and one pooled HTTP client."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        version: str = API_VERSION,
        timeout_seconds: float = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._version = version
        self._timeout_seconds = float(timeout_seconds)
        self.endpoint = f"{base_url.rstrip('/')}/messages"
        self._http = httpx.AsyncClient(timeout=self._timeout_seconds, transport=transport)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Api-Key": self._api_key,
            "anthropic-version": self._version,
        }

    async def create_message(self, request: ChatRequest) -> ChatResponse:
        try:
            body = json.dumps(request.to_payload())
        except (TypeError, ValueError) as exc:
            raise RequestEncodingError(f"marshal request: {exc}") from exc

        try:
            async with self._http.stream(
                "POST", self.endpoint, content=body, headers=self._headers()
            ) as response:
                try:
                    raw = await response.aread()
                except httpx.TimeoutException:
                    raise
                except (httpx.TransportError, httpx.StreamError) as exc:
                    raise MalformedResponseError(f"read response body: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                f"send request: timed out after {self._timeout_seconds:g}s"
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"send request: {exc}") from exc

        if not response.is_success:
            text = raw.decode("utf-8", errors="replace")
            logger.warning(
                "Messages API returned status %d for model %s", response.status_code, request.model
            )
            raise APIError(response.status_code, text)

        message = ChatResponse.from_json(raw)
        logger.debug(
            "Messages API call complete (model=%s stop_reason=%s input_tokens=%d output_tokens=%d)",
            message.model,
            message.stop_reason,
            message.usage.input_tokens,
            message.usage.output_tokens,
        )
        return message

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AnthropicClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
