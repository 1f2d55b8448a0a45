"""Storage layer"""

from .repository import (
    DefinitionRepository,
    SessionRepository,
    InMemoryDefinitionRepository,
    InMemorySessionRepository
)

__all__ = [
    "DefinitionRepository",
    "SessionRepository",
    "InMemoryDefinitionRepository",
    "InMemorySessionRepository"
]
