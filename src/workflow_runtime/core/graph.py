"""
Validated, indexed view of a workflow definition
"""
import logging
from typing import Dict, List, Optional

from ..exceptions import DefinitionError, TraversalError
from ..models.workflow import WorkflowDefinition, WorkflowNode
from .conditions import KNOWN_OPERATORS, DEFAULT_OPERATOR, VALUE_OPERATORS


logger = logging.getLogger(__name__)


class WorkflowGraph:
    """Node index and transition resolution for one definition"""

    def __init__(self, definition: WorkflowDefinition):
        self.definition = definition
        self._nodes: Dict[str, WorkflowNode] = {}
        for node in definition.nodes:
            self._nodes.setdefault(node.id, node)

        errors = self.validate()
        if errors:
            raise DefinitionError(
                f"Workflow '{definition.id}' is invalid: {'; '.join(errors)}",
                errors
            )

        self.entry_node = self._find_entry_node()

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def nodes(self) -> List[WorkflowNode]:
        return list(self.definition.nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self._nodes.get(node_id)

    def next_node(self, node_id: str, output_id: str) -> Optional[WorkflowNode]:
        """
        Resolve the node reached through an output

        Returns None for a terminal node or a terminal exit. Raises
        TraversalError when the output points at a node that does not exist.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise TraversalError(node_id, output_id, node_id)

        output = node.get_output(output_id)
        if output is None or output.target is None:
            return None

        target = self._nodes.get(output.target)
        if target is None:
            raise TraversalError(node_id, output_id, output.target)
        return target

    def get_downstream_nodes(self, node_id: str) -> List[WorkflowNode]:
        node = self._nodes.get(node_id)
        if not node:
            return []
        return [
            self._nodes[output.target]
            for output in node.outputs
            if output.target is not None and output.target in self._nodes
        ]

    def validate(self) -> List[str]:
        """Check structural invariants, returning every problem found"""
        errors = []

        # unique node ids
        seen = set()
        duplicates = []
        for node in self.definition.nodes:
            if node.id in seen and node.id not in duplicates:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            errors.append(f"Duplicate node IDs found: {', '.join(duplicates)}")

        for node in self.definition.nodes:
            output_ids = node.output_ids
            if len(output_ids) != len(set(output_ids)):
                errors.append(f"Node '{node.id}' declares duplicate output IDs")

            for output in node.outputs:
                if output.target is not None and output.target not in self._nodes:
                    errors.append(
                        f"Output '{output.id}' of node '{node.id}' targets unknown node '{output.target}'"
                    )

            if node.is_condition:
                errors.extend(self._validate_condition(node))

        errors.extend(self._validate_entry())
        return errors

    def _validate_condition(self, node: WorkflowNode) -> List[str]:
        errors = []
        field_name = node.config.get("field")
        if not isinstance(field_name, str) or not field_name:
            errors.append(f"Condition node '{node.id}' has no field configured")

        operator = node.config.get("operator") or DEFAULT_OPERATOR
        if operator not in KNOWN_OPERATORS:
            errors.append(f"Condition node '{node.id}' uses unknown operator '{operator}'")
        elif operator in VALUE_OPERATORS and node.config.get("value") in (None, ""):
            errors.append(f"Condition node '{node.id}' needs a value for operator '{operator}'")
        return errors

    def _entry_candidates(self) -> List[WorkflowNode]:
        marked = [node for node in self.definition.nodes if node.is_entry]
        if marked:
            return marked
        return [node for node in self.definition.nodes if node.is_trigger]

    def _validate_entry(self) -> List[str]:
        marked = [node.id for node in self.definition.nodes if node.is_entry]
        if len(marked) > 1:
            return [f"More than one node is marked as entry: {', '.join(marked)}"]
        if marked:
            return []

        triggers = [node.id for node in self.definition.nodes if node.is_trigger]
        if not triggers:
            return ["No entry node: add a trigger node or mark one node with isEntry"]
        if len(triggers) > 1:
            return [
                f"Ambiguous entry: trigger nodes {', '.join(triggers)} "
                f"need an explicit isEntry marker"
            ]
        return []

    def _find_entry_node(self) -> WorkflowNode:
        entry = self._entry_candidates()[0]
        logger.debug(f"Workflow '{self.definition.id}' enters at node '{entry.id}'")
        return entry
