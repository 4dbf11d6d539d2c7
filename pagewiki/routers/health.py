from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from pagewiki.core.config import admin_password
from pagewiki.core.db import ping
from pagewiki.models import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ReadyResponse, "description": "Admin secret missing or page store unreachable"}},
)
def ready():
    missing: list[str] = []
    if not admin_password():
        missing.append("ADMIN_PASSWORD missing")
    if not ping():
        missing.append("page store unreachable")

    if missing:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ReadyResponse(ready=False, reason="; ".join(missing)).model_dump(),
        )
    return ReadyResponse(ready=True)
