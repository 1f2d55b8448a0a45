"""
API request and response models
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# definitions

class OutputInfo(BaseModel):
    """Node output"""
    id: str = Field(..., description="Output ID")
    label: str = Field("", description="Label shown on the builder canvas")
    type: str = Field("default", description="Output kind")
    target: Optional[str] = Field(None, description="Downstream node ID, null for a terminal exit")


class NodeInfo(BaseModel):
    """Workflow node"""
    id: str = Field(..., description="Node ID")
    type: str = Field(..., description="Node type")
    label: str = Field("", description="Label")
    config: Dict[str, Any] = Field(default_factory=dict, description="Step configuration")
    is_entry: bool = Field(False, description="Explicit entry marker")
    outputs: List[OutputInfo] = Field(default_factory=list, description="Declared outputs")


class DefinitionResponse(BaseModel):
    """Workflow definition summary"""
    id: str = Field(..., description="Definition ID")
    name: str = Field(..., description="Name")
    version: str = Field(..., description="Version")
    description: Optional[str] = Field(None, description="Description")
    flow_type: Optional[str] = Field(None, description="Flow type")
    node_count: int = Field(..., description="Number of nodes")
    entry_node_id: Optional[str] = Field(None, description="Resolved entry node")


class DefinitionDetailResponse(DefinitionResponse):
    """Workflow definition with its nodes"""
    nodes: List[NodeInfo] = Field(..., description="Nodes")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Metadata")


class DefinitionValidationResponse(BaseModel):
    """Result of validating a workflow document"""
    valid: bool = Field(..., description="Whether the document is valid")
    errors: List[str] = Field(default_factory=list, description="Validation errors")
    definition_id: Optional[str] = Field(None, description="Definition ID when valid")


# sessions

class SessionCreateRequest(BaseModel):
    """Create a runtime session"""
    definition_id: str = Field(..., description="Definition to run")
    event_id: str = Field("", description="Host event the session belongs to")
    auto_start: bool = Field(False, description="Start the workflow right away")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Metadata")


class StepCompleteRequest(BaseModel):
    """Complete the current step"""
    model_config = ConfigDict(extra="forbid")

    output_id: str = Field("default", description="Output to leave the step through")
    data: Dict[str, Any] = Field(default_factory=dict, description="Partial data to collect")
    activation: Optional[int] = Field(None, description="Activation the input was issued for")
    use_renderer: bool = Field(True, description="Route the input through the step renderer")


class HistoryEntryInfo(BaseModel):
    """History stack entry"""
    node_id: str
    output_id: str
    touched_keys: List[str] = Field(default_factory=list)
    auto: bool = False


class SessionResponse(BaseModel):
    """Runtime session state"""
    id: str = Field(..., description="Session ID")
    definition_id: str = Field(..., description="Definition ID")
    event_id: str = Field("", description="Host event ID")
    status: str = Field(..., description="Engine status")
    current_node_id: Optional[str] = Field(None, description="Active node")
    current_node_type: Optional[str] = Field(None, description="Type of the active node")
    activation: int = Field(..., description="Current activation token")
    can_go_back: bool = Field(False, description="Whether back navigation is possible")
    collected_data: Dict[str, Any] = Field(default_factory=dict, description="Collected data")
    history: List[HistoryEntryInfo] = Field(default_factory=list, description="History stack")
    error: Optional[str] = Field(None, description="Error message")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last update")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Metadata")


class EngineEventInfo(BaseModel):
    """Engine event log entry"""
    type: str
    sequence: int
    node_id: Optional[str] = None
    output_id: Optional[str] = None
    next_node_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    timestamp: datetime


# common

class ErrorResponse(BaseModel):
    """Error body"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Error details")
    request_id: Optional[str] = Field(None, description="Request ID")
    timestamp: datetime = Field(default_factory=_utcnow, description="Timestamp")


class SuccessResponse(BaseModel):
    """Generic success body"""
    success: bool = Field(True, description="Whether the call succeeded")
    message: str = Field(..., description="Message")
    data: Optional[Dict[str, Any]] = Field(None, description="Extra data")


class PaginatedResponse(BaseModel):
    """Paginated list"""
    total: int = Field(..., description="Total items")
    offset: int = Field(..., description="Offset")
    limit: int = Field(..., description="Page size")
    items: List[Any] = Field(..., description="Items")


class HealthCheckResponse(BaseModel):
    """Health check"""
    status: str = Field(..., description="Health status", examples=["healthy", "unhealthy"])
    version: str = Field(..., description="Version")
    timestamp: datetime = Field(default_factory=_utcnow, description="Timestamp")
    checks: Dict[str, bool] = Field(default_factory=dict, description="Component checks")
    definitions: int = Field(0, description="Registered definitions")
    sessions: int = Field(0, description="Live sessions")
