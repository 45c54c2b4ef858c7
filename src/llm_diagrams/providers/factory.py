"""Provider construction helpers."""

import httpx

from llm_diagrams.config import Settings
from llm_diagrams.errors import ConfigError
from llm_diagrams.providers.anthropic import AnthropicClient
from llm_diagrams.providers.base import MessageClient


def build_message_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MessageClient:
    api_key = settings.anthropic_api_key.strip()
    if not api_key:
        raise ConfigError("ANTHROPIC_API_KEY environment variable not set")
    return AnthropicClient(
        api_key,
        base_url=settings.anthropic_base_url,
        version=settings.anthropic_version,
        timeout_seconds=max(1, int(settings.anthropic_timeout_seconds)),
        transport=transport,
    )
