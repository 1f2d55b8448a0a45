"""
FastAPI dependencies
"""
import logging
from typing import Any, Dict

from fastapi import Depends, HTTPException, status

from ..config import RuntimeSettings
from ..models.session import RuntimeSession
from ..storage.repository import DefinitionRepository, SessionRepository


logger = logging.getLogger(__name__)


# global instances, filled by the application lifespan
app_state: Dict[str, Any] = {}


def get_app_state() -> Dict[str, Any]:
    """Application state"""
    return app_state


def _require(key: str, label: str) -> Any:
    value = get_app_state().get(key)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "service_unavailable",
                "message": f"{label} not initialized"
            }
        )
    return value


def get_settings() -> RuntimeSettings:
    return _require("settings", "Settings")


def get_definition_repository() -> DefinitionRepository:
    return _require("definition_repo", "Definition repository")


def get_session_repository() -> SessionRepository:
    return _require("session_repo", "Session repository")


async def get_session(
    session_id: str,
    sessions: SessionRepository = Depends(get_session_repository)
) -> RuntimeSession:
    """Resolve a session from the path or fail with 404"""
    session = await sessions.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "session_not_found",
                "message": f"Session {session_id} not found"
            }
        )
    return session
