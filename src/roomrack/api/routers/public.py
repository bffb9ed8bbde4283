"""Public routes: health and the rack API."""

from fastapi import APIRouter

from roomrack.api.routes import rack

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(rack.router)
