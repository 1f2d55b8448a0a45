"""
Workflow execution engine
"""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..exceptions import InvalidOutputError, ReentrantCallError, TraversalError
from ..models.state import (
    ABSENT, EngineEvent, EngineEventType, HistoryEntry, WorkflowState, WorkflowStatus, utcnow
)
from ..models.workflow import DEFAULT_OUTPUT, WorkflowDefinition, WorkflowNode
from .conditions import BranchDecision, ConditionEvaluator
from .graph import WorkflowGraph


logger = logging.getLogger(__name__)

EngineEventListener = Callable[[EngineEvent], None]


class WorkflowEngine:
    """
    State machine that walks a workflow graph one step at a time.

    The engine decides which node is active and how collected data flows
    between steps. It performs no I/O, owns no timers and never advances by
    itself: every transition is the result of exactly one call to start,
    complete_step, go_back or reset.
    """

    def __init__(
        self,
        definition: Union[WorkflowDefinition, WorkflowGraph],
        evaluator: Optional[ConditionEvaluator] = None,
        strict: bool = False
    ):
        if isinstance(definition, WorkflowGraph):
            self.graph = definition
        else:
            self.graph = WorkflowGraph(definition)

        self.evaluator = evaluator or ConditionEvaluator()
        self.strict = strict
        self.last_rejection: Optional[InvalidOutputError] = None

        self._state = WorkflowState()
        self._events: List[EngineEvent] = []
        self._listeners: List[EngineEventListener] = []
        self._activation = 0
        self._sequence = 0
        self._active_operation: Optional[str] = None

    # read-only views

    @property
    def definition(self) -> WorkflowDefinition:
        return self.graph.definition

    @property
    def state(self) -> WorkflowState:
        """Snapshot of the current state; mutating it does not affect the engine"""
        return self._state.snapshot()

    @property
    def status(self) -> WorkflowStatus:
        return self._state.status

    @property
    def current_node(self) -> Optional[WorkflowNode]:
        if self._state.current_node_id is None:
            return None
        return self.graph.get_node(self._state.current_node_id)

    @property
    def events(self) -> Tuple[EngineEvent, ...]:
        return tuple(self._events)

    @property
    def activation(self) -> int:
        """Token identifying the current stay on a node"""
        return self._activation

    @property
    def can_go_back(self) -> bool:
        return bool(self._state.history) and self._state.status in (
            WorkflowStatus.RUNNING, WorkflowStatus.COMPLETED
        )

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self.graph.get_node(node_id)

    # listeners

    def on(self, listener: EngineEventListener) -> Callable[[], None]:
        """Subscribe to engine events; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # operations

    def start(self) -> bool:
        """Enter the workflow at its entry node"""
        with self._operation("start"):
            if self._state.status is not WorkflowStatus.IDLE:
                logger.warning(
                    f"Workflow '{self.graph.id}' cannot start from status '{self._state.status.value}'"
                )
                return False

            entry = self.graph.entry_node
            self._events.clear()
            self._state = WorkflowState(
                status=WorkflowStatus.RUNNING,
                current_node_id=entry.id,
                started_at=utcnow()
            )
            self._activation += 1

            logger.info(f"Workflow '{self.graph.id}' started at node '{entry.id}'")
            self._emit(EngineEventType.STARTED, node_id=entry.id)
            return True

    def complete_step(
        self,
        output_id: str = DEFAULT_OUTPUT,
        data: Optional[Dict[str, Any]] = None,
        *,
        activation: Optional[int] = None,
        auto: bool = False
    ) -> bool:
        """
        Complete the current step through one of its outputs

        Args:
            output_id: declared output of the current node
            data: partial data merged into collected data
            activation: activation token the completion was issued for; a
                stale token is ignored
            auto: marks completions issued by condition auto-advance

        Returns:
            True if the completion was accepted and the state changed
        """
        with self._operation("complete_step"):
            state = self._state
            if state.status is not WorkflowStatus.RUNNING or state.current_node_id is None:
                logger.debug(f"Ignoring completion '{output_id}': workflow is {state.status.value}")
                return False

            if activation is not None and activation != self._activation:
                logger.info(
                    f"Ignoring stale completion '{output_id}' for activation {activation} "
                    f"(current {self._activation})"
                )
                return False

            node = self.graph.get_node(state.current_node_id)
            if node is None:
                self._fail(TraversalError(state.current_node_id, output_id, state.current_node_id))
                return True

            if node.outputs and not node.has_output(output_id):
                error = InvalidOutputError(node.id, output_id, node.output_ids)
                self.last_rejection = error
                if self.strict:
                    raise error
                logger.warning(f"Rejected completion: {error}")
                return False

            partial = dict(data or {})
            touched = {key: state.collected_data.get(key, ABSENT) for key in partial}
            state.collected_data.update(partial)
            state.history.append(HistoryEntry(node.id, output_id, touched, auto=auto))

            try:
                next_node = self.graph.next_node(node.id, output_id)
            except TraversalError as e:
                self._fail(e)
                return True

            if next_node is None:
                state.status = WorkflowStatus.COMPLETED
                state.current_node_id = None
                state.finished_at = utcnow()
                self._activation += 1

                logger.info(f"Workflow '{self.graph.id}' completed at node '{node.id}' via '{output_id}'")
                self._emit(
                    EngineEventType.COMPLETED,
                    node_id=node.id,
                    output_id=output_id,
                    data=dict(state.collected_data)
                )
                return True

            state.current_node_id = next_node.id
            self._activation += 1

            logger.info(f"Step '{node.id}' completed via '{output_id}' -> '{next_node.id}'")
            self._emit(
                EngineEventType.STEP_COMPLETED,
                node_id=node.id,
                output_id=output_id,
                next_node_id=next_node.id,
                data=partial
            )
            return True

    def go_back(self) -> Optional[HistoryEntry]:
        """Undo the last transition, restoring every key it touched"""
        with self._operation("go_back"):
            state = self._state
            if not state.history:
                return None

            if state.status not in (WorkflowStatus.RUNNING, WorkflowStatus.COMPLETED):
                logger.warning(f"Cannot go back from status '{state.status.value}'")
                return None

            entry = state.history.pop()
            for key, previous in entry.touched_keys.items():
                if previous is ABSENT:
                    state.collected_data.pop(key, None)
                else:
                    state.collected_data[key] = previous

            left_node_id = state.current_node_id
            state.current_node_id = entry.node_id
            state.status = WorkflowStatus.RUNNING
            state.finished_at = None
            self._activation += 1

            logger.info(f"Navigated back to node '{entry.node_id}'")
            self._emit(
                EngineEventType.NAVIGATED_BACK,
                node_id=entry.node_id,
                output_id=entry.output_id,
                data={"left_node_id": left_node_id, "restored_keys": sorted(entry.touched_keys)}
            )
            return entry

    def reset(self) -> None:
        """Discard the run and return to idle"""
        with self._operation("reset"):
            self._state = WorkflowState()
            self._events.clear()
            self.last_rejection = None
            self._activation += 1

            logger.info(f"Workflow '{self.graph.id}' reset")
            self._notify(EngineEvent(type=EngineEventType.RESET, sequence=self._sequence))

    def evaluate_condition(self, node: Optional[WorkflowNode] = None) -> BranchDecision:
        """Evaluate a condition node (the current node by default) without changing state"""
        node = node or self.current_node
        if node is None:
            raise ValueError("No node to evaluate")
        return self.evaluator.evaluate(node, self._state.collected_data)

    # internals

    @contextmanager
    def _operation(self, name: str):
        if self._active_operation is not None:
            raise ReentrantCallError(name, self._active_operation)
        self._active_operation = name
        try:
            yield
        finally:
            self._active_operation = None

    def _fail(self, error: Exception):
        self._state.status = WorkflowStatus.ERROR
        self._state.error = str(error)
        self._state.finished_at = utcnow()
        self._activation += 1

        logger.error(f"Workflow '{self.graph.id}' failed: {error}")
        self._emit(
            EngineEventType.ERROR,
            node_id=self._state.current_node_id,
            error=str(error)
        )

    def _emit(self, event_type: EngineEventType, **payload) -> EngineEvent:
        self._sequence += 1
        event = EngineEvent(type=event_type, sequence=self._sequence, **payload)
        self._events.append(event)
        self._notify(event)
        return event

    def _notify(self, event: EngineEvent):
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Engine listener failed on {event.type.value}: {e}", exc_info=True)
