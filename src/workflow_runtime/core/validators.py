"""
Structural validation of workflow documents
"""
from typing import Any, Dict, List, Optional
import logging

from jsonschema import Draft7Validator


logger = logging.getLogger(__name__)


OUTPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "label": {"type": ["string", "null"]},
        "type": {"type": ["string", "null"]},
        "target": {"type": ["string", "null"]},
        "next": {"type": ["string", "null"]},
        "to": {"type": ["string", "null"]}
    }
}

NODE_DATA_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "label": {"type": ["string", "null"]},
        "config": {"type": ["object", "null"]},
        "outputs": {"type": "array", "items": OUTPUT_SCHEMA},
        "isEntry": {"type": "boolean"}
    }
}

NODE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "type": {"type": "string", "minLength": 1},
        "label": {"type": ["string", "null"]},
        "config": {"type": ["object", "null"]},
        "outputs": {"type": "array", "items": OUTPUT_SCHEMA},
        "isEntry": {"type": "boolean"},
        "is_entry": {"type": "boolean"},
        "data": NODE_DATA_SCHEMA
    },
    # the step type comes from data when present, otherwise from the node;
    # canvas nodes may also carry a widget type such as "workflowStep"
    "anyOf": [
        {"required": ["type"]},
        {"required": ["data"]}
    ]
}

EDGE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["source", "target"],
    "properties": {
        "source": {"type": "string", "minLength": 1},
        "target": {"type": "string", "minLength": 1},
        "sourceHandle": {"type": ["string", "null"]}
    }
}

DEFINITION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["steps"],
    "properties": {
        "id": {"type": ["string", "integer"]},
        "name": {"type": ["string", "null"]},
        "description": {"type": ["string", "null"]},
        "version": {"type": ["string", "null"]},
        "flowType": {"type": ["string", "null"]},
        "metadata": {"type": ["object", "null"]},
        "steps": {
            "type": "object",
            "required": ["nodes"],
            "properties": {
                "nodes": {"type": "array", "items": NODE_SCHEMA},
                "edges": {"type": "array", "items": EDGE_SCHEMA}
            }
        }
    }
}


class DocumentValidator:
    """JSON Schema validator for raw workflow documents"""

    def __init__(self, schema: Optional[Dict[str, Any]] = None):
        self.schema = schema or DEFINITION_SCHEMA
        Draft7Validator.check_schema(self.schema)
        self._validator = Draft7Validator(self.schema)

    def validate(self, document: Any) -> List[str]:
        """
        Validate a document against the definition schema

        Returns:
            list of "path: message" strings, empty when the document is valid
        """
        errors = []
        for error in sorted(self._validator.iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path]):
            path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
            errors.append(f"{path}: {error.message}")

        if errors:
            logger.debug(f"Workflow document failed schema validation with {len(errors)} errors")

        return errors


def format_validation_errors(errors: List[str], max_errors: Optional[int] = None) -> str:
    """Render validation errors as an indented list"""
    if not errors:
        return "No validation errors"

    if max_errors and len(errors) > max_errors:
        displayed_errors = errors[:max_errors]
        remaining = len(errors) - max_errors
        formatted_errors = "\n".join(f"  - {error}" for error in displayed_errors)
        return f"Validation errors:\n{formatted_errors}\n  ... and {remaining} more errors"

    formatted_errors = "\n".join(f"  - {error}" for error in errors)
    return f"Validation errors:\n{formatted_errors}"
