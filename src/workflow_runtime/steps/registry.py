"""
Step renderer registry
"""
import logging
from typing import Dict, Optional, Set, Union

from ..models.workflow import NodeType, is_trigger_type
from .base import StepRenderer
from .builtin import ConditionStep, DelayStep, GenericStep, TriggerStep


logger = logging.getLogger(__name__)


class StepRegistry:
    """Maps node types to renderers, with a generic fallback"""

    def __init__(self, fallback: Optional[StepRenderer] = None):
        self._renderers: Dict[str, StepRenderer] = {}
        self.fallback = fallback or GenericStep()
        self._warned: Set[str] = set()

    def register(self, node_type: Union[NodeType, str], renderer: StepRenderer):
        key = node_type.value if isinstance(node_type, NodeType) else node_type
        if key in self._renderers:
            logger.info(f"Replacing renderer for node type {key}")
        self._renderers[key] = renderer

    def unregister(self, node_type: Union[NodeType, str]):
        key = node_type.value if isinstance(node_type, NodeType) else node_type
        self._renderers.pop(key, None)

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._renderers

    def resolve(self, node_type: str) -> StepRenderer:
        renderer = self._renderers.get(node_type)
        if renderer is not None:
            return renderer

        if not NodeType.is_known(node_type) and node_type not in self._warned:
            self._warned.add(node_type)
            logger.warning(f"Unknown step type {node_type}, using generic step")
        return self.fallback


def default_registry() -> StepRegistry:
    """Registry with the reference renderers"""
    registry = StepRegistry()

    trigger = TriggerStep()
    for node_type in NodeType:
        if is_trigger_type(node_type.value):
            registry.register(node_type, trigger)

    registry.register(NodeType.CONDITION, ConditionStep())
    registry.register(NodeType.DELAY, DelayStep())
    return registry
