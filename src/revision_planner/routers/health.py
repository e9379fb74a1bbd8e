from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
def health_check() -> dict[str, str]:
    """Simple liveness endpoint for container probes."""
    return {"status": "ok"}
