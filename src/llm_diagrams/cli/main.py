"""Click CLI group: serve, generate, and render commands."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from llm_diagrams.config import get_settings
from llm_diagrams.diagrams.render import build_render_pipeline
from llm_diagrams.diagrams.service import build_diagram_service
from llm_diagrams.errors import DiagramError
from llm_diagrams.logging import configure_logging
from llm_diagrams.providers.factory import build_message_client

_verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Log at LOG_LEVEL instead of WARNING."
)


def _configure_cli_logging(verbose: bool) -> None:
    configure_logging(get_settings().log_level if verbose else "WARNING")


@click.group()
def cli() -> None:
    """LLM Diagrams CLI."""


@cli.command()
@click.option("--host", type=str, default=None, help="Bind host (default: BIND_HOST).")
@click.option("--port", type=int, default=None, help="Bind port (default: BIND_PORT).")
def serve(host: str | None, port: int | None) -> None:
    """Run the web service."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "llm_diagrams.main:create_app",
        factory=True,
        host=host or settings.bind_host,
        port=port or settings.bind_port,
        log_config=None,
    )


async def _generate(description: str, *, render: bool) -> dict[str, str]:
    settings = get_settings()
    client = build_message_client(settings)
    try:
        service = build_diagram_service(settings, client)
        if not render:
            markup = await service.generator.generate(description)
            return {"input": description, "markup": markup}
        result = await service.create(description)
    finally:
        await client.aclose()
    return {"input": result.input, "markup": result.markup, "image_url": result.image_url}


@cli.command()
@click.argument("description")
@click.option("--render/--no-render", default=True, show_default=True)
@click.option("--json", "json_output", is_flag=True, help="Print structured JSON output.")
@_verbose_option
def generate(description: str, render: bool, json_output: bool, verbose: bool) -> None:
    """Generate PlantUML for DESCRIPTION and optionally render it."""
    _configure_cli_logging(verbose)
    try:
        payload = asyncio.run(_generate(description, render=render))
    except DiagramError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)
    if json_output:
        click.echo(json.dumps(payload, indent=2))
        return
    click.echo(payload["markup"])
    if "image_url" in payload:
        click.echo(f"image: {payload['image_url']}")


@cli.command()
@click.argument("markup_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_verbose_option
def render(markup_file: Path, verbose: bool) -> None:
    """Render an existing PlantUML file through the pipeline."""
    _configure_cli_logging(verbose)
    pipeline = build_render_pipeline(get_settings())
    try:
        artifact = asyncio.run(pipeline.render(markup_file.read_text(encoding="utf-8")))
    except DiagramError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)
    click.echo(str(artifact.image_path))


if __name__ == "__main__":
    cli()
