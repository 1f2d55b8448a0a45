"""Core workflow runtime components"""

from .conditions import ConditionEvaluator, BranchDecision
from .engine import WorkflowEngine
from .graph import WorkflowGraph
from .parser import DefinitionParser
from .runner import WorkflowRunner
from .validators import DocumentValidator, format_validation_errors

__all__ = [
    "ConditionEvaluator",
    "BranchDecision",
    "WorkflowEngine",
    "WorkflowGraph",
    "DefinitionParser",
    "WorkflowRunner",
    "DocumentValidator",
    "format_validation_errors"
]
