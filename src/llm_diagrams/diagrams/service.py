"""Description to rendered diagram workflow."""

import logging
from dataclasses import dataclass

from llm_diagrams.config import Settings
from llm_diagrams.diagrams.generator import DiagramGenerator, PromptPolicy
from llm_diagrams.diagrams.render import RenderPipeline, Renderer, build_render_pipeline
from llm_diagrams.errors import DiagramError
from llm_diagrams.providers.base import MessageClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiagramResult:
    input: str
    markup: str
    image_url: str


class DiagramService:
    def __init__(self, generator: DiagramGenerator, pipeline: RenderPipeline) -> None:
        self.generator = generator
        self.pipeline = pipeline

    async def create(self, description: str) -> DiagramResult:
        try:
            markup = await self.generator.generate(description)
        except DiagramError as exc:
            logger.warning("Diagram generation stage failed: %s", exc)
            raise
        try:
            artifact = await self.pipeline.render(markup)
        except DiagramError as exc:
            logger.warning("Diagram render stage failed: %s", exc)
            raise
        return DiagramResult(input=description, markup=markup, image_url=artifact.image_url)


def build_diagram_service(
    settings: Settings,
    client: MessageClient | None,
    *,
    renderer: Renderer | None = None,
) -> DiagramService:
    return DiagramService(
        DiagramGenerator(client, PromptPolicy.from_settings(settings)),
        build_render_pipeline(settings, renderer),
    )
