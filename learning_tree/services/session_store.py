import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from learning_tree.schemas import ChatSession

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Mapping from session id to chat state, injected into the handlers."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[ChatSession]:
        ...

    @abstractmethod
    def put(self, session: ChatSession) -> None:
        ...

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        ...

    @abstractmethod
    def lock(self, session_id: str) -> asyncio.Lock:
        """Lock that serialises message traffic on one session."""

    @abstractmethod
    def __len__(self) -> int:
        ...

    def __contains__(self, session_id: str) -> bool:
        return self.get(session_id) is not None


class InMemorySessionStore(SessionStore):
    """
    Process-lifetime store. Sessions never expire; a put on an existing
    id replaces the stored session.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, ChatSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def put(self, session: ChatSession) -> None:
        if session.session_id in self._sessions:
            logger.info(f"[SESSIONS] Replacing session {session.session_id}")
        self._sessions[session.session_id] = session

    def delete(self, session_id: str) -> bool:
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None

    def lock(self, session_id: str) -> asyncio.Lock:
        return self._locks.setdefault(session_id, asyncio.Lock())

    def __len__(self) -> int:
        return len(self._sessions)
