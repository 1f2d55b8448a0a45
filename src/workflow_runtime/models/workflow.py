"""
Workflow definition models
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from enum import Enum


class NodeType(Enum):
    """Step types known to the runtime"""
    # triggers
    TRIGGER_MANUAL = "TRIGGER_MANUAL"
    TRIGGER_PHOTO_UPLOAD = "TRIGGER_PHOTO_UPLOAD"
    TRIGGER_QR_SCAN = "TRIGGER_QR_SCAN"
    TRIGGER_TIMER = "TRIGGER_TIMER"
    TRIGGER_EVENT_STATE = "TRIGGER_EVENT_STATE"
    TOUCH_TO_START = "TOUCH_TO_START"
    # logic
    CONDITION = "CONDITION"
    DELAY = "DELAY"
    LOOP = "LOOP"
    # animation
    BEFORE_COUNTDOWN = "BEFORE_COUNTDOWN"
    COUNTDOWN = "COUNTDOWN"
    COMPLIMENT = "COMPLIMENT"
    AFTER_SHARE = "AFTER_SHARE"
    # features
    TAKE_PHOTO = "TAKE_PHOTO"
    SELECTION_SCREEN = "SELECTION_SCREEN"
    DIGITAL_GRAFFITI = "DIGITAL_GRAFFITI"
    FOTO_SPIEL = "FOTO_SPIEL"
    LEAD_COLLECTION = "LEAD_COLLECTION"
    # cloud / ai
    FACE_SEARCH = "FACE_SEARCH"
    AI_MODIFY = "AI_MODIFY"
    EMAIL_SHARE = "EMAIL_SHARE"
    SMS_SHARE = "SMS_SHARE"
    QR_CODE = "QR_CODE"
    # hardware
    PRINT = "PRINT"
    LED_RING = "LED_RING"

    @classmethod
    def is_known(cls, value: str) -> bool:
        return value in cls._value2member_map_


TRIGGER_PREFIX = "TRIGGER_"


def is_trigger_type(node_type: str) -> bool:
    """Whether a node type starts a workflow"""
    return node_type.startswith(TRIGGER_PREFIX) or node_type == NodeType.TOUCH_TO_START.value


class OutputType(Enum):
    """Output handle kinds used by the builder"""
    DEFAULT = "default"
    CONDITIONAL = "conditional"
    SKIP = "skip"
    RETAKE = "retake"


DEFAULT_OUTPUT = "default"


@dataclass
class StepOutput:
    """Named exit of a node"""
    id: str
    label: str = ""
    type: str = OutputType.DEFAULT.value
    target: Optional[str] = None  # downstream node id, None for a terminal exit

    @property
    def is_terminal(self) -> bool:
        return self.target is None


@dataclass
class WorkflowNode:
    """Single step of a workflow"""
    id: str
    type: str
    label: str = ""
    config: Dict[str, Any] = field(default_factory=dict)
    outputs: List[StepOutput] = field(default_factory=list)
    is_entry: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return not self.outputs

    @property
    def is_trigger(self) -> bool:
        return is_trigger_type(self.type)

    @property
    def is_condition(self) -> bool:
        return self.type == NodeType.CONDITION.value

    def get_output(self, output_id: str) -> Optional[StepOutput]:
        for output in self.outputs:
            if output.id == output_id:
                return output
        return None

    def has_output(self, output_id: str) -> bool:
        return self.get_output(output_id) is not None

    @property
    def output_ids(self) -> List[str]:
        return [output.id for output in self.outputs]


@dataclass
class WorkflowDefinition:
    """Declarative workflow graph, read-only for the engine"""
    id: str
    name: str = ""
    description: Optional[str] = None
    nodes: List[WorkflowNode] = field(default_factory=list)
    version: str = "1.0.0"
    flow_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the runtime document layout"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "flowType": self.flow_type,
            "metadata": dict(self.metadata),
            "steps": {
                "nodes": [
                    {
                        "id": node.id,
                        "type": node.type,
                        "label": node.label,
                        "config": dict(node.config),
                        "isEntry": node.is_entry,
                        "outputs": [
                            {
                                "id": output.id,
                                "label": output.label,
                                "type": output.type,
                                "target": output.target
                            }
                            for output in node.outputs
                        ]
                    }
                    for node in self.nodes
                ]
            }
        }
