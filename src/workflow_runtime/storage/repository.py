"""
Storage repository interfaces and in-memory implementations
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from ..core.graph import WorkflowGraph
from ..core.parser import DefinitionParser
from ..exceptions import DefinitionError
from ..models.session import RuntimeSession
from ..models.workflow import WorkflowDefinition


logger = logging.getLogger(__name__)

DEFINITION_SUFFIXES = ('.yaml', '.yml', '.json')


class DefinitionRepository(ABC):
    """Workflow definition repository"""

    @abstractmethod
    async def save(self, definition: WorkflowDefinition) -> str:
        """Store (or replace) a definition"""
        pass

    @abstractmethod
    async def get(self, definition_id: str) -> Optional[WorkflowDefinition]:
        pass

    @abstractmethod
    async def list(self, offset: int = 0, limit: int = 100) -> List[WorkflowDefinition]:
        pass

    @abstractmethod
    async def delete(self, definition_id: str) -> bool:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class SessionRepository(ABC):
    """Runtime session repository"""

    @abstractmethod
    async def save(self, session: RuntimeSession) -> str:
        pass

    @abstractmethod
    async def get(self, session_id: str) -> Optional[RuntimeSession]:
        pass

    @abstractmethod
    async def list_by_definition(
        self,
        definition_id: str,
        offset: int = 0,
        limit: int = 100
    ) -> List[RuntimeSession]:
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


# in-memory implementations
class InMemoryDefinitionRepository(DefinitionRepository):
    """In-memory definition repository"""

    def __init__(self, parser: Optional[DefinitionParser] = None):
        self.parser = parser or DefinitionParser()
        self.definitions: Dict[str, WorkflowDefinition] = {}

    async def save(self, definition: WorkflowDefinition) -> str:
        self.definitions[definition.id] = definition
        return definition.id

    async def get(self, definition_id: str) -> Optional[WorkflowDefinition]:
        return self.definitions.get(definition_id)

    async def list(self, offset: int = 0, limit: int = 100) -> List[WorkflowDefinition]:
        definitions = list(self.definitions.values())
        return definitions[offset:offset + limit]

    async def delete(self, definition_id: str) -> bool:
        if definition_id in self.definitions:
            del self.definitions[definition_id]
            return True
        return False

    async def count(self) -> int:
        return len(self.definitions)

    async def load_directory(self, directory: Path) -> List[str]:
        """
        Load every YAML/JSON definition in a directory

        Invalid documents are logged and skipped so one broken file does not
        keep the others from loading.

        Returns:
            ids of the definitions that were loaded
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise DefinitionError(f"Definitions directory not found: {directory}")

        loaded = []
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in DEFINITION_SUFFIXES:
                continue
            try:
                definition = self.parser.parse_file(path)
                WorkflowGraph(definition)
            except DefinitionError as e:
                logger.error(f"Skipping invalid definition {path.name}: {e}")
                continue
            loaded.append(await self.save(definition))

        logger.info(f"Loaded {len(loaded)} workflow definitions from {directory}")
        return loaded


class InMemorySessionRepository(SessionRepository):
    """In-memory session repository"""

    def __init__(self):
        self.sessions: Dict[str, RuntimeSession] = {}

    async def save(self, session: RuntimeSession) -> str:
        session.touch()
        self.sessions[session.id] = session
        return session.id

    async def get(self, session_id: str) -> Optional[RuntimeSession]:
        return self.sessions.get(session_id)

    async def list_by_definition(
        self,
        definition_id: str,
        offset: int = 0,
        limit: int = 100
    ) -> List[RuntimeSession]:
        results = [
            session for session in self.sessions.values()
            if session.definition_id == definition_id
        ]
        return results[offset:offset + limit]

    async def delete(self, session_id: str) -> bool:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.runner.reset()
        return True

    async def count(self) -> int:
        return len(self.sessions)
