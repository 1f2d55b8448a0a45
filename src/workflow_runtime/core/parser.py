"""
Workflow definition parser
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Union
from uuid import uuid4

import yaml

from ..exceptions import DefinitionError, DefinitionParseError
from ..models.workflow import (
    DEFAULT_OUTPUT, OutputType, StepOutput, WorkflowDefinition, WorkflowNode
)
from .validators import DocumentValidator


logger = logging.getLogger(__name__)

MAX_PATH_LENGTH = 4096

# keys of a canvas node's data block that map onto WorkflowNode fields
CANVAS_STEP_KEYS = frozenset({'type', 'label', 'config', 'outputs', 'isEntry'})


class DefinitionParser:
    """Parser for YAML/JSON workflow documents in runtime or canvas layout"""

    def __init__(self, validator: Optional[DocumentValidator] = None):
        self.validator = validator or DocumentValidator()
        self.parsers = {
            'yaml': self._parse_yaml,
            'yml': self._parse_yaml,
            'json': self._parse_json
        }

    def parse(self, source: Union[str, Path, Dict[str, Any]]) -> WorkflowDefinition:
        """
        Parse a workflow definition

        Args:
            source: a file path, a YAML/JSON string or an already decoded dict

        Returns:
            WorkflowDefinition: the parsed definition (not yet graph-validated)
        """
        if isinstance(source, dict):
            return self.parse_dict(source)

        if isinstance(source, Path):
            return self.parse_file(source)

        if isinstance(source, str):
            if self._looks_like_path(source):
                return self.parse_file(Path(source))
            return self.parse_string(source)

        raise DefinitionParseError(f"Unsupported source type: {type(source).__name__}")

    def parse_file(self, file_path: Path) -> WorkflowDefinition:
        """Parse a workflow file"""
        suffix = file_path.suffix.lower().lstrip('.')
        if suffix not in self.parsers:
            raise DefinitionParseError(f"Unsupported file format: {suffix or file_path.name}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise DefinitionParseError(f"Cannot read workflow file {file_path}: {e}") from e

        data = self.parsers[suffix](content)
        definition = self.parse_dict(data)
        logger.info(f"Loaded workflow definition '{definition.id}' from {file_path}")
        return definition

    def parse_string(self, content: str) -> WorkflowDefinition:
        """Parse a workflow string (YAML is a superset of JSON)"""
        return self.parse_dict(self._parse_yaml(content))

    def parse_dict(self, data: Any) -> WorkflowDefinition:
        """Parse an already decoded workflow document"""
        if not isinstance(data, dict):
            raise DefinitionParseError(
                f"Workflow document must be a mapping, got {type(data).__name__}"
            )

        if 'workflow' in data and isinstance(data['workflow'], dict):
            data = data['workflow']

        errors = self.validator.validate(data)
        if errors:
            raise DefinitionError(f"Workflow document is invalid: {'; '.join(errors)}", errors)

        steps = data['steps']
        nodes = [self._parse_node(node_data) for node_data in steps.get('nodes', [])]

        edge_errors = self._bind_edges(nodes, steps.get('edges', []))
        if edge_errors:
            raise DefinitionError(f"Workflow edges are invalid: {'; '.join(edge_errors)}", edge_errors)

        definition = WorkflowDefinition(
            id=str(data.get('id') or uuid4()),
            name=data.get('name') or '',
            description=data.get('description'),
            nodes=nodes,
            version=data.get('version') or '1.0.0',
            flow_type=data.get('flowType'),
            metadata=data.get('metadata') or {}
        )

        logger.debug(f"Parsed workflow definition '{definition.id}' with {len(nodes)} nodes")
        return definition

    def _parse_yaml(self, content: str) -> Any:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise DefinitionParseError(f"Failed to parse YAML: {e}") from e

    def _parse_json(self, content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise DefinitionParseError(f"Failed to parse JSON: {e}") from e

    def _looks_like_path(self, source: str) -> bool:
        if '\n' in source or len(source) > MAX_PATH_LENGTH:
            return False
        try:
            path = Path(source)
            return path.suffix.lower().lstrip('.') in self.parsers or path.is_file()
        except OSError:
            return False

    def _parse_node(self, data: Dict[str, Any]) -> WorkflowNode:
        """Parse a node in either document layout"""
        body = data.get('data')
        if isinstance(body, dict):
            # canvas layout saved by the visual builder; a node-level type
            # names the canvas widget ("workflowStep"), not the step
            raw_outputs = body.get('outputs')
            if raw_outputs is None:
                raw_outputs = [{'id': DEFAULT_OUTPUT, 'type': OutputType.DEFAULT.value}]
            metadata = {key: value for key, value in body.items() if key not in CANVAS_STEP_KEYS}
            if 'position' in data:
                metadata['position'] = data['position']
            if 'type' in data:
                metadata['canvasType'] = data['type']
            is_entry = body.get('isEntry', data.get('isEntry', False))
        else:
            body = data
            raw_outputs = data.get('outputs') or []
            metadata = dict(data.get('metadata') or {})
            is_entry = data.get('isEntry', data.get('is_entry', False))

        return WorkflowNode(
            id=data['id'],
            type=body['type'],
            label=body.get('label') or '',
            config=dict(body.get('config') or {}),
            outputs=[self._parse_output(output) for output in raw_outputs],
            is_entry=bool(is_entry),
            metadata=metadata
        )

    def _parse_output(self, data: Dict[str, Any]) -> StepOutput:
        target = data.get('target', data.get('next', data.get('to')))
        return StepOutput(
            id=data['id'],
            label=data.get('label') or '',
            type=data.get('type') or OutputType.DEFAULT.value,
            target=target
        )

    def _bind_edges(self, nodes: List[WorkflowNode], edges: List[Dict[str, Any]]) -> List[str]:
        """Fold canvas edges into output targets"""
        errors = []
        index: Dict[str, WorkflowNode] = {}
        for node in nodes:
            index.setdefault(node.id, node)

        bound: Set[Tuple[str, str]] = {
            (node.id, output.id)
            for node in nodes
            for output in node.outputs
            if output.target is not None
        }

        for edge in edges:
            source = index.get(edge['source'])
            if source is None:
                errors.append(f"Edge source '{edge['source']}' not found in nodes")
                continue

            handle = edge.get('sourceHandle') or DEFAULT_OUTPUT
            output = source.get_output(handle)
            if output is None:
                errors.append(f"Edge from node '{source.id}' uses undeclared output '{handle}'")
                continue

            if (source.id, handle) in bound:
                errors.append(f"Output '{handle}' of node '{source.id}' is bound to more than one node")
                continue

            output.target = edge['target']
            bound.add((source.id, handle))

        return errors
