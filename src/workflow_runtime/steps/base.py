"""
Step renderer contract
"""
from abc import ABC
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from ..models.workflow import DEFAULT_OUTPUT, WorkflowNode


StepCompleteCallback = Callable[..., bool]


@dataclass(frozen=True)
class StepProps:
    """What a renderer gets for one activation of a node"""
    node: WorkflowNode
    collected_data: Mapping[str, Any]  # read-only snapshot
    on_complete: StepCompleteCallback  # on_complete(output_id="default", data=None) -> accepted
    event_id: str = ""
    activation: int = 0

    @property
    def config(self) -> Dict[str, Any]:
        return self.node.config

    def complete(self, output_id: str = DEFAULT_OUTPUT, data: Optional[Dict[str, Any]] = None) -> bool:
        return self.on_complete(output_id, data)


class StepRenderer(ABC):
    """
    Host-side implementation of a node type.

    render() owns the activation while it runs: it is scheduled as an
    asyncio task and cancelled when the activation ends. handle_input()
    receives input the host forwards for the current step.
    """

    async def render(self, props: StepProps) -> None:
        """Drive the step; the default waits for input through handle_input"""
        return None

    def handle_input(
        self,
        props: StepProps,
        output_id: str = DEFAULT_OUTPUT,
        data: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Turn host input into a completion"""
        return props.on_complete(output_id, data)
