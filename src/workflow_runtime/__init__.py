"""
Guest Workflow Runtime - 工作流运行时
"""

__version__ = "1.0.0"

from .core.engine import WorkflowEngine
from .core.graph import WorkflowGraph
from .core.parser import DefinitionParser
from .core.runner import WorkflowRunner
from .models.workflow import WorkflowDefinition, WorkflowNode, StepOutput
from .models.state import WorkflowState, WorkflowStatus, EngineEvent, EngineEventType

__all__ = [
    "WorkflowEngine",
    "WorkflowGraph",
    "DefinitionParser",
    "WorkflowRunner",
    "WorkflowDefinition",
    "WorkflowNode",
    "StepOutput",
    "WorkflowState",
    "WorkflowStatus",
    "EngineEvent",
    "EngineEventType"
]
