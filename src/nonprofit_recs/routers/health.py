from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    directory: Literal["configured", "unconfigured", "not_started"]


@router.get("/health", response_model=HealthResponse, status_code=200)
async def healthcheck(request: Request):
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        directory = "not_started"
    elif orchestrator.generator.directory.is_configured:
        directory = "configured"
    else:
        directory = "unconfigured"
    return {"status": "ok", "directory": directory}
