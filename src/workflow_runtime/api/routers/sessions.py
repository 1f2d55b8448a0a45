"""
Runtime session API routes
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..models import (
    EngineEventInfo, HistoryEntryInfo, SessionCreateRequest, SessionResponse,
    StepCompleteRequest, SuccessResponse
)
from ..dependencies import (
    get_definition_repository, get_session, get_session_repository, get_settings
)
from ...config import RuntimeSettings
from ...core.runner import WorkflowRunner
from ...exceptions import InvalidOutputError
from ...models.session import RuntimeSession
from ...storage.repository import DefinitionRepository, SessionRepository


logger = logging.getLogger(__name__)
router = APIRouter()


def _conflict(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "error": error,
            "message": message
        }
    )


def session_response(session: RuntimeSession) -> SessionResponse:
    engine = session.runner.engine
    state = engine.state
    node = engine.current_node
    return SessionResponse(
        id=session.id,
        definition_id=session.definition_id,
        event_id=session.event_id,
        status=state.status.value,
        current_node_id=state.current_node_id,
        current_node_type=node.type if node else None,
        activation=engine.activation,
        can_go_back=engine.can_go_back,
        collected_data=state.collected_data,
        history=[HistoryEntryInfo(**entry.to_dict()) for entry in state.history],
        error=state.error,
        created_at=session.created_at,
        updated_at=session.updated_at,
        metadata=session.metadata
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: SessionCreateRequest,
    definitions: DefinitionRepository = Depends(get_definition_repository),
    sessions: SessionRepository = Depends(get_session_repository),
    settings: RuntimeSettings = Depends(get_settings)
) -> SessionResponse:
    """Create a runtime session for a registered definition"""
    definition = await definitions.get(request.definition_id)
    if definition is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "definition_not_found",
                "message": f"Definition {request.definition_id} not found"
            }
        )

    runner = WorkflowRunner(
        definition,
        event_id=request.event_id,
        strict=settings.strict_outputs,
        max_auto_advance=settings.max_auto_advance
    )
    session = RuntimeSession(
        definition_id=definition.id,
        runner=runner,
        event_id=request.event_id,
        metadata=request.metadata
    )
    if request.auto_start:
        runner.start()

    await sessions.save(session)
    logger.info(f"Created session {session.id} for definition '{definition.id}'")
    return session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session_state(
    session: RuntimeSession = Depends(get_session)
) -> SessionResponse:
    """Current state of a session"""
    return session_response(session)


@router.post("/{session_id}/start", response_model=SessionResponse)
async def start_session(
    session: RuntimeSession = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repository)
) -> SessionResponse:
    """Start the workflow of an idle session"""
    if not session.runner.start():
        raise _conflict(
            "invalid_state",
            f"Session {session.id} is {session.runner.status.value}, reset it before starting again"
        )
    await sessions.save(session)
    return session_response(session)


@router.post("/{session_id}/complete", response_model=SessionResponse)
async def complete_step(
    request: StepCompleteRequest,
    session: RuntimeSession = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repository)
) -> SessionResponse:
    """Complete the current step through one of its outputs"""
    runner = session.runner
    engine = runner.engine

    if request.activation is not None and request.activation != engine.activation:
        raise _conflict(
            "stale_activation",
            f"Activation {request.activation} has ended (current {engine.activation})"
        )

    rejection_before = engine.last_rejection
    try:
        if request.use_renderer:
            accepted = runner.submit(request.output_id, request.data)
        else:
            accepted = runner.complete_step(request.output_id, request.data)
    except InvalidOutputError as e:
        raise _conflict("invalid_output", str(e))

    if not accepted:
        rejection = engine.last_rejection
        if rejection is not None and rejection is not rejection_before:
            raise _conflict("invalid_output", str(rejection))
        raise _conflict("invalid_state", f"Session {session.id} is {runner.status.value}")

    await sessions.save(session)
    return session_response(session)


@router.post("/{session_id}/back", response_model=SessionResponse)
async def go_back(
    session: RuntimeSession = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repository)
) -> SessionResponse:
    """Navigate back to the previous step"""
    if session.runner.go_back() is None:
        raise _conflict("cannot_go_back", f"Session {session.id} has nothing to go back to")
    await sessions.save(session)
    return session_response(session)


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(
    session: RuntimeSession = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repository)
) -> SessionResponse:
    """Discard the run and return the session to idle"""
    session.runner.reset()
    await sessions.save(session)
    return session_response(session)


@router.get("/{session_id}/events", response_model=List[EngineEventInfo])
async def list_events(
    session: RuntimeSession = Depends(get_session)
) -> List[EngineEventInfo]:
    """Event log of the current run"""
    return [EngineEventInfo(**event.to_dict()) for event in session.runner.engine.events]


@router.delete("/{session_id}", response_model=SuccessResponse)
async def delete_session(
    session: RuntimeSession = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repository)
) -> SuccessResponse:
    """Delete a session, cancelling its active step"""
    await sessions.delete(session.id)
    return SuccessResponse(message=f"Session {session.id} deleted")
