"""Workflow, state and session models"""

from .workflow import (
    WorkflowDefinition, WorkflowNode, StepOutput, NodeType, OutputType,
    DEFAULT_OUTPUT, is_trigger_type
)
from .state import (
    WorkflowState, WorkflowStatus, HistoryEntry, EngineEvent, EngineEventType, ABSENT
)
from .session import RuntimeSession

__all__ = [
    "WorkflowDefinition",
    "WorkflowNode",
    "StepOutput",
    "NodeType",
    "OutputType",
    "DEFAULT_OUTPUT",
    "is_trigger_type",
    "WorkflowState",
    "WorkflowStatus",
    "HistoryEntry",
    "EngineEvent",
    "EngineEventType",
    "ABSENT",
    "RuntimeSession"
]
