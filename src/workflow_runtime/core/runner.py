"""
Workflow runner

Host-side driver that owns an engine, feeds it completions from step
renderers and issues condition auto-advance as discrete follow-up calls.
"""
import asyncio
import hashlib
import json
import logging
from functools import partial
from types import MappingProxyType
from typing import Any, Dict, Optional, Set, Tuple, Union

from ..exceptions import InvalidOutputError
from ..models.state import EngineEvent, EngineEventType, HistoryEntry, WorkflowState, WorkflowStatus
from ..models.workflow import DEFAULT_OUTPUT, WorkflowDefinition, WorkflowNode
from ..steps.base import StepProps
from ..steps.registry import StepRegistry, default_registry
from .conditions import BranchDecision, ConditionEvaluator
from .engine import WorkflowEngine
from .graph import WorkflowGraph


logger = logging.getLogger(__name__)

DEFAULT_MAX_AUTO_ADVANCE = 100


class WorkflowRunner:
    """Drives a WorkflowEngine on behalf of a host UI or API"""

    def __init__(
        self,
        definition: Union[WorkflowDefinition, WorkflowGraph],
        registry: Optional[StepRegistry] = None,
        event_id: str = "",
        evaluator: Optional[ConditionEvaluator] = None,
        strict: bool = False,
        max_auto_advance: int = DEFAULT_MAX_AUTO_ADVANCE
    ):
        self.engine = WorkflowEngine(definition, evaluator=evaluator, strict=strict)
        self.registry = registry or default_registry()
        self.event_id = event_id
        self.max_auto_advance = max_auto_advance

        self._auto_guard: Set[Tuple[str, int, str]] = set()
        self._render_task: Optional[asyncio.Task] = None
        self._finished = asyncio.Event()
        self.engine.on(self._track_finish)

    @property
    def status(self) -> WorkflowStatus:
        return self.engine.status

    @property
    def state(self) -> WorkflowState:
        return self.engine.state

    @property
    def current_node(self) -> Optional[WorkflowNode]:
        return self.engine.current_node

    @property
    def render_task(self) -> Optional[asyncio.Task]:
        return self._render_task

    def start(self) -> bool:
        """Start the workflow and settle the entry node"""
        accepted = self.engine.start()
        if accepted:
            self._settle()
        return accepted

    def complete_step(
        self,
        output_id: str = DEFAULT_OUTPUT,
        data: Optional[Dict[str, Any]] = None,
        activation: Optional[int] = None
    ) -> bool:
        """Complete the current step directly, bypassing its renderer"""
        if activation is None:
            activation = self.engine.activation
        return self._on_step_complete(activation, output_id, data)

    def submit(self, output_id: str = DEFAULT_OUTPUT, data: Optional[Dict[str, Any]] = None) -> bool:
        """Forward user input to the current step's renderer"""
        props = self.props()
        if props is None:
            logger.debug(f"Ignoring input '{output_id}': no active step")
            return False

        renderer = self.registry.resolve(props.node.type)
        return bool(renderer.handle_input(props, output_id, data))

    def go_back(self) -> Optional[HistoryEntry]:
        """
        Navigate back to the last step a person completed

        Entries created by condition auto-advance are unwound as well,
        otherwise the condition would immediately resolve forward again.
        """
        entry = self.engine.go_back()
        while entry is not None and entry.auto and self.engine.can_go_back:
            entry = self.engine.go_back()

        if entry is not None:
            self._settle()
        return entry

    def reset(self):
        """Cancel the active step and return the engine to idle"""
        self._cancel_render()
        self._auto_guard.clear()
        self.engine.reset()

    def props(self) -> Optional[StepProps]:
        """Props for the current step, bound to the current activation"""
        node = self.engine.current_node
        if node is None or self.engine.status is not WorkflowStatus.RUNNING:
            return None

        activation = self.engine.activation
        return StepProps(
            node=node,
            collected_data=MappingProxyType(dict(self.engine.state.collected_data)),
            on_complete=partial(self._on_step_complete, activation),
            event_id=self.event_id,
            activation=activation
        )

    async def wait_for_render(self):
        """Wait until the active renderer task (and any it hands over to) is done"""
        while self._render_task is not None and not self._render_task.done():
            await asyncio.wait({self._render_task})

    async def wait_until_finished(self, timeout: Optional[float] = None) -> WorkflowState:
        """Wait until the workflow completes or fails"""
        await asyncio.wait_for(self._finished.wait(), timeout)
        return self.engine.state

    async def run(self, timeout: Optional[float] = None) -> WorkflowState:
        """Start the workflow and wait for it to finish"""
        self.start()
        return await self.wait_until_finished(timeout)

    # internals

    def _on_step_complete(
        self,
        activation: int,
        output_id: str = DEFAULT_OUTPUT,
        data: Optional[Dict[str, Any]] = None
    ) -> bool:
        accepted = self.engine.complete_step(output_id, data, activation=activation)
        if accepted:
            self._settle()
        return accepted

    def _settle(self):
        """Auto-advance resolvable conditions, then hand the new step to its renderer"""
        advanced = 0
        while True:
            node = self.engine.current_node
            if self.engine.status is not WorkflowStatus.RUNNING or node is None or not node.is_condition:
                break

            decision = self.engine.evaluate_condition(node)
            if decision is BranchDecision.UNRESOLVED:
                break

            activation = self.engine.activation
            self._auto_guard = {key for key in self._auto_guard if key[1] == activation}
            guard_key = (node.id, activation, self._data_digest())
            if guard_key in self._auto_guard:
                break

            if advanced >= self.max_auto_advance:
                logger.warning(
                    f"Stopped condition auto-advance at '{node.id}' after {advanced} consecutive steps"
                )
                break

            self._auto_guard.add(guard_key)
            logger.debug(f"Auto-advancing condition '{node.id}' via '{decision.value}'")
            try:
                accepted = self.engine.complete_step(
                    decision.value,
                    {f"_condition_{node.id}": decision is BranchDecision.THEN},
                    activation=activation,
                    auto=True
                )
            except InvalidOutputError as e:
                logger.error(f"Condition '{node.id}' cannot auto-advance: {e}")
                break

            if not accepted:
                break
            advanced += 1

        self._schedule_render()

    def _data_digest(self) -> str:
        payload = json.dumps(self.engine.state.collected_data, sort_keys=True, default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def _schedule_render(self):
        self._cancel_render()

        props = self.props()
        if props is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # synchronous host: input arrives through submit()
            return

        renderer = self.registry.resolve(props.node.type)
        task = loop.create_task(renderer.render(props), name=f"render-{props.node.id}-{props.activation}")
        task.add_done_callback(self._render_finished)
        self._render_task = task

    def _cancel_render(self):
        task = self._render_task
        self._render_task = None
        if task is None or task.done():
            return

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None

        # a renderer completing its own step finishes on its own
        if task is not current:
            task.cancel()

    def _render_finished(self, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Step renderer task {task.get_name()} failed: {error}", exc_info=error)

    def _track_finish(self, event: EngineEvent):
        if event.type in (EngineEventType.COMPLETED, EngineEventType.ERROR):
            self._finished.set()
        elif event.type in (EngineEventType.STARTED, EngineEventType.NAVIGATED_BACK, EngineEventType.RESET):
            self._finished.clear()
