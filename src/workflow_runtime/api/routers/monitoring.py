"""
Monitoring API routes
"""
import logging

from fastapi import APIRouter, Depends

from ..models import HealthCheckResponse
from ..dependencies import get_definition_repository, get_session_repository
from ...storage.repository import DefinitionRepository, SessionRepository
from ... import __version__


logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    definitions: DefinitionRepository = Depends(get_definition_repository),
    sessions: SessionRepository = Depends(get_session_repository)
) -> HealthCheckResponse:
    """Health check"""
    checks = {}
    counts = {"definitions": 0, "sessions": 0}

    for name, repository in (("definitions", definitions), ("sessions", sessions)):
        try:
            counts[name] = await repository.count()
            checks[f"{name}_repository"] = True
        except Exception as e:
            logger.error(f"{name.capitalize()} repository health check failed: {e}", exc_info=True)
            checks[f"{name}_repository"] = False

    return HealthCheckResponse(
        status="healthy" if all(checks.values()) else "unhealthy",
        version=__version__,
        checks=checks,
        **counts
    )
