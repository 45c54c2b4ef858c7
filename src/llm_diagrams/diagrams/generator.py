"""PlantUML markup generation via the messages API."""

import logging
from dataclasses import dataclass

from llm_diagrams.config import Settings
from llm_diagrams.errors import (
    ConfigError,
    EmptyResponseError,
    GenerationError,
    InvalidInputError,
    ProviderError,
)
from llm_diagrams.providers.anthropic import MODEL_CLAUDE_35_SONNET
from llm_diagrams.providers.base import ChatMessage, ChatRequest, MessageClient, TextBlock

logger = logging.getLogger(__name__)

MARKUP_START = "@startuml"
MARKUP_END = "@enduml"
DEFAULT_MAX_TOKENS = 1000

PROMPT_TEMPLATE = (
    "Generate a PlantUML diagram based on the following description. \n"
    "Only return the PlantUML code without any explanation or additional text.\n"
    f"The code should start with {MARKUP_START} and end with {MARKUP_END}.\n"
    "\n"
    "Description: {description}"
)


@dataclass(frozen=True, slots=True)
class PromptPolicy:
    """Fixed generation policy: one template, one model, one token ceiling."""

    model: str = MODEL_CLAUDE_35_SONNET
    max_tokens: int = DEFAULT_MAX_TOKENS
    template: str = PROMPT_TEMPLATE

    @classmethod
    def from_settings(cls, settings: Settings) -> "PromptPolicy":
        return cls(
            model=settings.diagram_model.strip() or MODEL_CLAUDE_35_SONNET,
            max_tokens=int(settings.diagram_max_tokens),
        )

    def render_prompt(self, description: str) -> str:
        return self.template.replace("{description}", description)


class DiagramGenerator:
    def __init__(self, client: MessageClient | None, policy: PromptPolicy | None = None) -> None:
        self._client = client
        self.policy = policy or PromptPolicy()

    def build_request(self, description: str) -> ChatRequest:
        return ChatRequest(
            model=self.policy.model,
            max_tokens=self.policy.max_tokens,
            messages=(ChatMessage(role="user", content=self.policy.render_prompt(description)),),
        )

    async def generate(self, description: str) -> str:
        """Return PlantUML markup for a free-text description.

        The markup is returned as the model produced it; syntax problems only
        surface when the renderer runs.
        """
        if not description.strip():
            raise InvalidInputError("Input is required")
        if self._client is None:
            raise ConfigError("ANTHROPIC_API_KEY environment variable not set")

        request = self.build_request(description)
        try:
            response = await self._client.create_message(request)
        except ProviderError as exc:
            logger.warning("Markup generation failed: %s", exc)
            raise GenerationError(
                f"failed to create message: {exc}", retryable=exc.retryable
            ) from exc

        if not response.content:
            raise EmptyResponseError("no content in response")
        first = response.content[0]
        if not isinstance(first, TextBlock):
            raise EmptyResponseError(f"first content block is {first.type!r}, not text")
        logger.info(
            "Generated markup (model=%s chars=%d output_tokens=%d)",
            response.model,
            len(first.text),
            response.usage.output_tokens,
        )
        return first.text
