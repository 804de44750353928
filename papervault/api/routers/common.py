"""Common routes: root info, health check, catalog stats."""

from fastapi import APIRouter, Depends

from papervault import __version__
from papervault.api.routers.papers import get_service
from papervault.services.paper_service import PaperService

router = APIRouter()


@router.get("/")
def index():
    """Basic API information."""
    return {"message": "PaperVault API", "version": __version__, "docs": "/docs"}


@router.get("/health")
def health_check():
    """Liveness check."""
    return {"status": "healthy"}


@router.get("/api/stats")
def get_stats(service: PaperService = Depends(get_service)):
    """Paper count and total stored bytes."""
    return service.repo.get_stats()
