"""In-memory conversation sessions for the editor bridge."""

import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from ..orchestration import OrchestrationLoop

logger = logging.getLogger(__name__)


@dataclass
class EditSession:
    """One browser conversation: its loop plus a lock serializing requests."""

    session_id: str
    loop: OrchestrationLoop
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionStore:
    """
    Bounded session map; the least recently used session is evicted first.

    Sessions live only in this process. Running the server with several
    workers gives every worker its own store.
    """

    def __init__(self, max_sessions: int = 256) -> None:
        self.max_sessions = max(1, max_sessions)
        self._sessions: "OrderedDict[str, EditSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Optional[EditSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def add(self, loop: OrchestrationLoop, session_id: Optional[str] = None) -> EditSession:
        session_id = session_id or f"sess-{uuid.uuid4().hex[:12]}"
        session = EditSession(session_id=session_id, loop=loop)
        self._sessions[session_id] = session
        self._sessions.move_to_end(session_id)
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted session {evicted} (limit {self.max_sessions})")
        return session

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        self._sessions.clear()
