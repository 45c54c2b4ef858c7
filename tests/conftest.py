import logging
import os
import stat
from pathlib import Path

import pytest
import structlog

from llm_diagrams.config import get_settings
from llm_diagrams.logging import clear_context
from llm_diagrams.providers.base import ChatRequest, ChatResponse, TextBlock, Usage
from llm_diagrams.routes.web import limiter

SEQUENCE_MARKUP = "@startuml\nA -> B: call\nB --> A: return\n@enduml"


@pytest.fixture(autouse=True)
def test_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.delenv("ANTHROPIC_BASE_URL", raising=False)
    monkeypatch.setenv("RENDER_WORK_DIR", str(tmp_path / "temp"))
    monkeypatch.setenv("RENDER_COMMAND", "plantuml")
    monkeypatch.setenv("RENDER_VERIFY_OUTPUT", "0")
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    get_settings.cache_clear()
    limiter.reset()
    yield
    get_settings.cache_clear()
    limiter.reset()
    clear_context()
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class FakeMessageClient:
    """Records requests and replays a canned response or error."""

    def __init__(
        self,
        response: ChatResponse | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.response = response
        self.error = error
        self.requests: list[ChatRequest] = []
        self.closed = False

    async def create_message(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    async def aclose(self) -> None:
        self.closed = True


class FakeRenderer:
    """Writes a placeholder image beside the markup file, or fails."""

    def __init__(self, *, fail_with: Exception | None = None, write_output: bool = True) -> None:
        self.fail_with = fail_with
        self.write_output = write_output
        self.calls: list[Path] = []
        self.seen_markup: list[str] = []

    async def render(self, markup_path: Path) -> Path:
        self.calls.append(markup_path)
        self.seen_markup.append(markup_path.read_text(encoding="utf-8"))
        if self.fail_with is not None:
            raise self.fail_with
        output = markup_path.with_suffix(".png")
        if self.write_output:
            output.write_bytes(b"\x89PNG fake")
        return output


def text_response(text: str) -> ChatResponse:
    return ChatResponse(
        id="msg_01",
        role="assistant",
        content=(TextBlock(text=text),),
        model="claude-3-5-sonnet-20241022",
        stop_reason="end_turn",
        usage=Usage(input_tokens=12, output_tokens=34),
    )


def write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_plantuml(tmp_path: Path) -> Path:
    """Executable that mimics plantuml: `-t<fmt> <file>` writes <file stem>.<fmt>."""
    return write_script(
        tmp_path / "fake-plantuml",
        'fmt="${1#-t}"\nin="$2"\nprintf "IMG" > "${in%.*}.$fmt"\n',
    )


@pytest.fixture
def failing_plantuml(tmp_path: Path) -> Path:
    return write_script(
        tmp_path / "broken-plantuml",
        'echo "Syntax Error? (Assumed diagram type: sequence)" >&2\nexit 1\n',
    )
