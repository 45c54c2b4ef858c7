"""Form page routes: describe a diagram, get the rendered image back."""

import html
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from llm_diagrams.config import get_settings
from llm_diagrams.diagrams.service import DiagramResult, DiagramService
from llm_diagrams.errors import DiagramError, InvalidInputError
from llm_diagrams.ids import new_id
from llm_diagrams.logging import request_context

logger = logging.getLogger(__name__)

router = APIRouter(tags=["web"])
limiter = Limiter(key_func=get_remote_address)


def _generation_limit() -> str:
    return f"{max(1, get_settings().rate_limit_generations_per_minute)}/minute"


_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>LLM Diagrams</title>
</head>
<body>
<h1>LLM Diagrams</h1>
<form method="POST" action="/">
<textarea name="input" rows="8" cols="80" placeholder="Describe your diagram">{input}</textarea>
<br>
<button type="submit">Generate</button>
</form>
{result}
</body>
</html>
"""

_RESULT = """<h2>Diagram</h2>
<img src="{diagram_url}" alt="Generated diagram">
<h2>PlantUML</h2>
<pre>{markup}</pre>
"""


def render_page(result: DiagramResult | None = None) -> str:
    if result is None:
        return _PAGE.format(input="", result="")
    return _PAGE.format(
        input=html.escape(result.input),
        result=_RESULT.format(
            diagram_url=html.escape(result.image_url, quote=True),
            markup=html.escape(result.markup),
        ),
    )


def get_diagram_service(request: Request) -> DiagramService:
    return request.app.state.diagram_service


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    return HTMLResponse(render_page())


@router.post("/", response_class=HTMLResponse, response_model=None)
@limiter.limit(_generation_limit)
async def generate(
    request: Request,
    input: str = Form(default=""),  # noqa: A002
    service: DiagramService = Depends(get_diagram_service),  # noqa: B008
) -> HTMLResponse | PlainTextResponse:
    del request
    with request_context(new_id("req")):
        try:
            result = await service.create(input)
        except InvalidInputError as exc:
            return PlainTextResponse(str(exc), status_code=400)
        except DiagramError as exc:
            logger.error("Diagram request failed: %s", exc)
            return PlainTextResponse(str(exc), status_code=500)
    return HTMLResponse(render_page(result))
