"""
Runtime session model
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, TYPE_CHECKING
from uuid import uuid4

from .state import utcnow

if TYPE_CHECKING:
    from ..core.runner import WorkflowRunner


@dataclass
class RuntimeSession:
    """A host-facing run of one workflow definition"""
    definition_id: str
    runner: "WorkflowRunner"
    event_id: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def touch(self):
        self.updated_at = utcnow()
