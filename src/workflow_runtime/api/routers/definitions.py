"""
Workflow definition API routes
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ..models import (
    DefinitionDetailResponse, DefinitionResponse, DefinitionValidationResponse,
    NodeInfo, OutputInfo, PaginatedResponse
)
from ..dependencies import get_definition_repository
from ...core.graph import WorkflowGraph
from ...core.parser import DefinitionParser
from ...exceptions import DefinitionError
from ...models.workflow import WorkflowDefinition
from ...storage.repository import DefinitionRepository


logger = logging.getLogger(__name__)
router = APIRouter()

parser = DefinitionParser()


def _entry_node_id(definition: WorkflowDefinition):
    try:
        return WorkflowGraph(definition).entry_node.id
    except DefinitionError:
        return None


def definition_response(definition: WorkflowDefinition) -> DefinitionResponse:
    return DefinitionResponse(
        id=definition.id,
        name=definition.name,
        version=definition.version,
        description=definition.description,
        flow_type=definition.flow_type,
        node_count=len(definition.nodes),
        entry_node_id=_entry_node_id(definition)
    )


def definition_detail_response(definition: WorkflowDefinition) -> DefinitionDetailResponse:
    summary = definition_response(definition)
    return DefinitionDetailResponse(
        **summary.model_dump(),
        nodes=[
            NodeInfo(
                id=node.id,
                type=node.type,
                label=node.label,
                config=node.config,
                is_entry=node.is_entry,
                outputs=[
                    OutputInfo(id=output.id, label=output.label, type=output.type, target=output.target)
                    for output in node.outputs
                ]
            )
            for node in definition.nodes
        ],
        metadata=definition.metadata
    )


@router.get("", response_model=PaginatedResponse)
async def list_definitions(
    offset: int = Query(0, ge=0, description="Offset"),
    limit: int = Query(20, ge=1, le=100, description="Page size"),
    repository: DefinitionRepository = Depends(get_definition_repository)
) -> PaginatedResponse:
    """List registered definitions"""
    total = await repository.count()
    page = await repository.list(offset=offset, limit=limit)
    return PaginatedResponse(
        total=total,
        offset=offset,
        limit=limit,
        items=[definition_response(definition) for definition in page]
    )


@router.get("/{definition_id}", response_model=DefinitionDetailResponse)
async def get_definition(
    definition_id: str,
    repository: DefinitionRepository = Depends(get_definition_repository)
) -> DefinitionDetailResponse:
    """Get a definition with its nodes"""
    definition = await repository.get(definition_id)
    if definition is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "definition_not_found",
                "message": f"Definition {definition_id} not found"
            }
        )
    return definition_detail_response(definition)


@router.post("", response_model=DefinitionDetailResponse, status_code=status.HTTP_201_CREATED)
async def register_definition(
    document: Dict[str, Any] = Body(..., description="Workflow document in runtime or canvas layout"),
    repository: DefinitionRepository = Depends(get_definition_repository)
) -> DefinitionDetailResponse:
    """Register (or replace) a workflow definition"""
    # DefinitionError is turned into a 422 by the application handler
    definition = parser.parse_dict(document)
    WorkflowGraph(definition)

    replaced = await repository.get(definition.id) is not None
    await repository.save(definition)
    logger.info(f"{'Replaced' if replaced else 'Registered'} workflow definition '{definition.id}'")

    return definition_detail_response(definition)


@router.post("/validate", response_model=DefinitionValidationResponse)
async def validate_definition(
    document: Dict[str, Any] = Body(..., description="Workflow document to validate")
) -> DefinitionValidationResponse:
    """Validate a workflow document without registering it"""
    try:
        definition = parser.parse_dict(document)
        WorkflowGraph(definition)
    except DefinitionError as e:
        return DefinitionValidationResponse(valid=False, errors=e.errors)

    return DefinitionValidationResponse(valid=True, definition_id=definition.id)
