"""
Engine state and event models
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Absent:
    """Marker for a key that did not exist before a step wrote it"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<absent>"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


ABSENT = _Absent()


class WorkflowStatus(Enum):
    """Engine status"""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class EngineEventType(Enum):
    """Engine event types"""
    STARTED = "STARTED"
    STEP_COMPLETED = "STEP_COMPLETED"
    NAVIGATED_BACK = "NAVIGATED_BACK"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"
    # delivered to listeners only; reset clears the log
    RESET = "RESET"


@dataclass(frozen=True)
class HistoryEntry:
    """Reversible record of one forward transition"""
    node_id: str
    output_id: str
    touched_keys: Dict[str, Any] = field(default_factory=dict)  # key -> previous value or ABSENT
    auto: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "output_id": self.output_id,
            "touched_keys": sorted(self.touched_keys),
            "auto": self.auto
        }


@dataclass
class WorkflowState:
    """Engine-owned run state"""
    status: WorkflowStatus = WorkflowStatus.IDLE
    current_node_id: Optional[str] = None
    collected_data: Dict[str, Any] = field(default_factory=dict)
    history: List[HistoryEntry] = field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def snapshot(self) -> "WorkflowState":
        """Copy that shares no containers with this state"""
        return WorkflowState(
            status=self.status,
            current_node_id=self.current_node_id,
            collected_data=dict(self.collected_data),
            history=list(self.history),
            error=self.error,
            started_at=self.started_at,
            finished_at=self.finished_at
        )

    def is_terminal_state(self) -> bool:
        return self.status in (WorkflowStatus.COMPLETED, WorkflowStatus.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "current_node_id": self.current_node_id,
            "collected_data": dict(self.collected_data),
            "history": [entry.to_dict() for entry in self.history],
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None
        }


@dataclass(frozen=True)
class EngineEvent:
    """Entry of the engine's append-only event log"""
    type: EngineEventType
    sequence: int
    node_id: Optional[str] = None
    output_id: Optional[str] = None
    next_node_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "sequence": self.sequence,
            "node_id": self.node_id,
            "output_id": self.output_id,
            "next_node_id": self.next_node_id,
            "data": dict(self.data),
            "error": self.error,
            "timestamp": self.timestamp.isoformat()
        }
