"""
Pytest configuration and shared fixtures
"""
import copy
from pathlib import Path

import pytest

from workflow_runtime.core import DefinitionParser, WorkflowEngine


EXAMPLES_DIR = Path(__file__).parent.parent / "examples" / "definitions"


E2E_DOCUMENT = {
    "workflow": {
        "id": "e2e",
        "name": "Trigger, condition, photo, print",
        "version": "1.0.0",
        "steps": {
            "nodes": [
                {
                    "id": "trigger",
                    "type": "TRIGGER_MANUAL",
                    "label": "Start",
                    "outputs": [{"id": "default", "target": "cond"}]
                },
                {
                    "id": "cond",
                    "type": "CONDITION",
                    "label": "Has photo?",
                    "config": {"field": "hasPhoto", "operator": "is_true"},
                    "outputs": [
                        {"id": "then", "type": "conditional", "target": "print"},
                        {"id": "else", "type": "conditional", "target": "photo"}
                    ]
                },
                {
                    "id": "photo",
                    "type": "TAKE_PHOTO",
                    "label": "Take photo",
                    "outputs": [{"id": "default", "target": "print"}]
                },
                {
                    "id": "print",
                    "type": "PRINT",
                    "label": "Print",
                    "outputs": [{"id": "default"}]
                }
            ]
        }
    }
}


def _canvas_node(node_id, step_type, label, x, y, category, config=None, outputs=None, step_number=0):
    """Node shaped like the visual builder's saved React Flow nodes"""
    return {
        "id": node_id,
        "type": "workflowStep",
        "position": {"x": x, "y": y},
        "data": {
            "type": step_type,
            "label": label,
            "category": category,
            "stepNumber": step_number,
            "config": config or {},
            "color": "text-slate-700",
            "bgColor": "bg-slate-50",
            "borderColor": "border-slate-300",
            "icon": "Box",
            "outputs": outputs or [{"id": "default", "label": "", "type": "default"}]
        }
    }


def _canvas_edge(source, target, source_handle="default"):
    return {
        "id": f"e-{source}-{target}-{source_handle}",
        "source": source,
        "target": target,
        "sourceHandle": source_handle,
        "animated": False,
        "style": {"stroke": "#94a3b8", "strokeWidth": 2}
    }


CANVAS_DOCUMENT = {
    "id": "canvas",
    "name": "Canvas export",
    "steps": {
        "nodes": [
            _canvas_node("trigger", "TRIGGER_MANUAL", "Start", 0, 0, "trigger"),
            _canvas_node(
                "cond", "CONDITION", "Has photo?", 200, 0, "logic",
                config={"field": "hasPhoto", "operator": "is_true"},
                outputs=[
                    {"id": "then", "label": "Yes", "type": "default"},
                    {"id": "else", "label": "No", "type": "conditional"}
                ],
                step_number=1
            ),
            _canvas_node("photo", "TAKE_PHOTO", "Take photo", 400, 100, "feature", step_number=2),
            _canvas_node("print", "PRINT", "Print", 600, 0, "hardware", step_number=3)
        ],
        "edges": [
            _canvas_edge("trigger", "cond"),
            _canvas_edge("cond", "print", "then"),
            _canvas_edge("cond", "photo", "else"),
            _canvas_edge("photo", "print")
        ]
    }
}


GUESTBOOK_DOCUMENT = {
    "name": "Guestbook flow",
    "description": "Name, message, optional photo, send",
    "flowType": "GUESTBOOK",
    "isSystem": True,
    "steps": {
        "nodes": [
            _canvas_node("gb1", "TRIGGER_MANUAL", "Guestbook tab", 0, 100, "trigger",
                         config={"buttonLabel": "Write an entry"}),
            _canvas_node("gb2", "DIGITAL_GRAFFITI", "Enter name", 280, 100, "feature",
                         config={"enableText": True, "placeholder": "Your name *", "required": True}),
            _canvas_node("gb3", "DIGITAL_GRAFFITI", "Write message", 560, 100, "feature",
                         config={"enableText": True, "enableEmojis": True, "required": True}),
            _canvas_node(
                "gb4", "CONDITION", "Add a photo?", 840, 100, "logic",
                config={"field": "user_choice", "operator": "equals", "value": "yes"},
                outputs=[
                    {"id": "then", "label": "Yes (optional)", "type": "default"},
                    {"id": "else", "label": "Without photo", "type": "conditional"}
                ]
            ),
            _canvas_node("gb5", "TAKE_PHOTO", "Photo/selfie", 1120, 0, "feature",
                         config={"captureMode": "single", "mirror": True}),
            _canvas_node("gb6", "AFTER_SHARE", "Send message", 1120, 200, "animation",
                         config={"animation": "stamp"})
        ],
        "edges": [
            _canvas_edge("gb1", "gb2"),
            _canvas_edge("gb2", "gb3"),
            _canvas_edge("gb3", "gb4"),
            _canvas_edge("gb4", "gb5", "then"),
            _canvas_edge("gb4", "gb6", "else"),
            _canvas_edge("gb5", "gb6")
        ]
    }
}


def _build_document(nodes, workflow_id="test-workflow", edges=None):
    steps = {"nodes": nodes}
    if edges is not None:
        steps["edges"] = edges
    return {"id": workflow_id, "name": workflow_id, "steps": steps}


@pytest.fixture
def build_document():
    """Factory for minimal runtime-layout documents around a node list"""
    return _build_document


@pytest.fixture
def parser():
    return DefinitionParser()


@pytest.fixture
def e2e_document():
    return copy.deepcopy(E2E_DOCUMENT)


@pytest.fixture
def canvas_document():
    return copy.deepcopy(CANVAS_DOCUMENT)


@pytest.fixture
def e2e_definition(parser, e2e_document):
    return parser.parse_dict(e2e_document)


@pytest.fixture
def engine(e2e_definition):
    return WorkflowEngine(e2e_definition)


@pytest.fixture
def examples_dir():
    return EXAMPLES_DIR


@pytest.fixture
def guestbook_document():
    return copy.deepcopy(GUESTBOOK_DOCUMENT)
