from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])
liveness_router = APIRouter(tags=["health"], include_in_schema=False)

UP_AND_RUNNING = "Up and running!"


@router.get("/health", summary="Health check")
async def health_check() -> dict[str, str]:
    """Return service health status."""
    return {"status": "ok"}


@liveness_router.head("/")
async def reply_to_proxy() -> PlainTextResponse:
    """Answer load balancer health checks on the site root."""
    return PlainTextResponse(UP_AND_RUNNING)


@liveness_router.get("/healthz")
async def reply_to_orchestrator() -> PlainTextResponse:
    return PlainTextResponse(UP_AND_RUNNING)
