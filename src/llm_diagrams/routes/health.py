"""Health and readiness routes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from llm_diagrams.diagrams.render import PlantUMLRenderer

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    return {"ok": True}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    settings = request.app.state.settings
    pipeline = request.app.state.diagram_service.pipeline
    renderer = pipeline.renderer
    checks = {
        "credential": bool(settings.anthropic_api_key.strip()),
        # injected renderers have no executable to look up
        "renderer": renderer.available() if isinstance(renderer, PlantUMLRenderer) else True,
        "work_dir": pipeline.work_dir.is_dir(),
    }
    ok = all(checks.values())
    return JSONResponse({"ok": ok, "checks": checks}, status_code=200 if ok else 503)
