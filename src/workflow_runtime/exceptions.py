"""
Workflow runtime exceptions
"""
from typing import Iterable, List, Optional


class WorkflowRuntimeError(Exception):
    """Base exception for the workflow runtime"""
    pass


class DefinitionError(WorkflowRuntimeError):
    """A workflow definition is structurally invalid"""

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None):
        self.errors: List[str] = list(errors) if errors else [message]
        super().__init__(message)


class DefinitionParseError(DefinitionError):
    """A workflow document could not be read"""
    pass


class TraversalError(WorkflowRuntimeError):
    """An output points at a node that does not exist"""

    def __init__(self, node_id: str, output_id: str, target: str):
        self.node_id = node_id
        self.output_id = output_id
        self.target = target
        super().__init__(
            f"Output '{output_id}' of node '{node_id}' resolves to unknown node '{target}'"
        )


class InvalidOutputError(WorkflowRuntimeError):
    """A step was completed through an output the node does not declare"""

    def __init__(self, node_id: str, output_id: str, declared: Iterable[str] = ()):
        self.node_id = node_id
        self.output_id = output_id
        self.declared = list(declared)
        super().__init__(
            f"Node '{node_id}' has no output '{output_id}' "
            f"(declared: {', '.join(self.declared) or 'none'})"
        )


class ReentrantCallError(WorkflowRuntimeError):
    """An engine operation was invoked while another one was in progress"""

    def __init__(self, operation: str, active: str):
        self.operation = operation
        self.active = active
        super().__init__(f"Cannot call '{operation}' while '{active}' is in progress")
