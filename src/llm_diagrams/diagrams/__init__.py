"""Diagram generation and rendering package."""

from llm_diagrams.diagrams.generator import DiagramGenerator, PromptPolicy
from llm_diagrams.diagrams.render import PlantUMLRenderer, RenderArtifact, RenderPipeline
from llm_diagrams.diagrams.service import DiagramResult, DiagramService, build_diagram_service

__all__ = [
    "DiagramGenerator",
    "DiagramResult",
    "DiagramService",
    "PlantUMLRenderer",
    "PromptPolicy",
    "RenderArtifact",
    "RenderPipeline",
    "build_diagram_service",
]
