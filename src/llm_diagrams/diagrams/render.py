"""Render pipeline: scratch markup file in, image reference out."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from llm_diagrams.config import Settings
from llm_diagrams.errors import (
    ExternalToolError,
    FilesystemError,
    InvalidInputError,
    RenderTimeoutError,
)

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "diagram-"
SCRATCH_SUFFIX = ".puml"
_MAX_STDERR_CHARS = 4000


class Renderer(Protocol):
    async def render(self, markup_path: Path) -> Path: ...


def _to_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    return value


class PlantUMLRenderer:
    """Runs the plantuml executable; output lands beside the input file."""

    def __init__(
        self,
        command: str = "plantuml",
        *,
        output_format: str = "png",
        timeout_seconds: float = 60,
    ) -> None:
        self.argv = shlex.split(command)
        if not self.argv:
            raise ExternalToolError("failed to generate diagram: renderer command is empty")
        self.output_format = output_format.strip().lstrip(".").lower() or "png"
        self.timeout_seconds = float(timeout_seconds)

    def available(self) -> bool:
        return shutil.which(self.argv[0]) is not None

    def output_path_for(self, markup_path: Path) -> Path:
        return markup_path.with_suffix(f".{self.output_format}")

    def _render_sync(self, markup_path: Path) -> Path:
        argv = [*self.argv, f"-t{self.output_format}", str(markup_path)]
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                timeout=max(1.0, self.timeout_seconds),
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise RenderTimeoutError(
                f"failed to generate diagram: renderer timed out after {self.timeout_seconds:g}s",
                stderr=_to_text(exc.stderr),
            ) from exc
        except OSError as exc:
            raise ExternalToolError(
                f"failed to generate diagram: {exc}", launch_failed=True
            ) from exc
        if proc.returncode != 0:
            stderr = _to_text(proc.stderr)[:_MAX_STDERR_CHARS]
            detail = stderr.strip() or _to_text(proc.stdout).strip()
            raise ExternalToolError(
                f"failed to generate diagram: exit status {proc.returncode}"
                + (f": {detail}" if detail else ""),
                returncode=proc.returncode,
                stderr=stderr,
            )
        return self.output_path_for(markup_path)

    async def render(self, markup_path: Path) -> Path:
        return await asyncio.to_thread(self._render_sync, markup_path)


@dataclass(frozen=True, slots=True)
class RenderArtifact:
    source_markup: str
    scratch_path: Path
    image_path: Path
    image_url: str


class RenderPipeline:
    def __init__(
        self,
        work_dir: Path | str,
        renderer: Renderer,
        *,
        url_prefix: str = "/temp",
        verify_output: bool = False,
    ) -> None:
        self.work_dir = Path(work_dir)
        self.renderer = renderer
        self.url_prefix = "/" + (url_prefix.strip("/") or "temp")
        self.verify_output = verify_output

    def ensure_work_dir(self) -> Path:
        try:
            self.work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"create work directory {self.work_dir}: {exc}") from exc
        return self.work_dir

    def url_for(self, image_path: Path) -> str:
        return f"{self.url_prefix}/{image_path.name}"

    def _create_scratch(self, markup: str) -> Path:
        try:
            fd, name = tempfile.mkstemp(
                prefix=SCRATCH_PREFIX, suffix=SCRATCH_SUFFIX, dir=self.work_dir
            )
        except OSError as exc:
            raise FilesystemError(f"create scratch file: {exc}") from exc
        scratch = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(markup)
        except OSError as exc:
            self._discard(scratch, strict=False)
            raise FilesystemError(f"write scratch file {scratch.name}: {exc}") from exc
        return scratch

    def _discard(self, scratch: Path, *, strict: bool) -> None:
        try:
            scratch.unlink(missing_ok=True)
        except OSError as exc:
            if strict:
                raise FilesystemError(f"remove scratch file {scratch.name}: {exc}") from exc
            logger.warning("Could not remove scratch file %s: %s", scratch, exc)

    async def render(self, markup: str) -> RenderArtifact:
        """Render markup to an image; the scratch file never outlives the call."""
        if not markup.strip():
            raise InvalidInputError("markup is required")
        self.ensure_work_dir()
        scratch = self._create_scratch(markup)
        started = time.monotonic()
        try:
            image_path = await self.renderer.render(scratch)
            if self.verify_output and not image_path.exists():
                raise ExternalToolError(
                    "failed to generate diagram: renderer exited cleanly "
                    f"but wrote no {image_path.name}"
                )
        except BaseException:
            self._discard(scratch, strict=False)
            raise
        self._discard(scratch, strict=True)
        logger.info(
            "Rendered %s in %.2fs", image_path.name, time.monotonic() - started
        )
        return RenderArtifact(
            source_markup=markup,
            scratch_path=scratch,
            image_path=image_path,
            image_url=self.url_for(image_path),
        )


def build_renderer(settings: Settings) -> PlantUMLRenderer:
    return PlantUMLRenderer(
        settings.render_command,
        output_format=settings.render_format,
        timeout_seconds=max(1, int(settings.render_timeout_seconds)),
    )


def build_render_pipeline(
    settings: Settings, renderer: Renderer | None = None
) -> RenderPipeline:
    return RenderPipeline(
        settings.render_work_dir,
        renderer if renderer is not None else build_renderer(settings),
        url_prefix=settings.render_url_prefix,
        verify_output=int(settings.render_verify_output) == 1,
    )
