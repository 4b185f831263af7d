from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Session:
    id: str
    name: Optional[str] = None
    color: Optional[str] = None
    connected_at: float = field(default_factory=time.time)

    @property
    def registered(self) -> bool:
        return self.name is not None


class SessionRegistry:
    """Registered sessions keyed by session id.

    Only sessions that claimed a display name live here. Names are unique
    case-insensitively.
    """

    def __init__(self) -> None:
        self.sessions: Dict[str, Session] = {}

    def is_taken(self, name: str) -> bool:
        folded = name.casefold()
        return any(s.name is not None and s.name.casefold() == folded for s in self.sessions.values())

    def add(self, session: Session) -> None:
        if session.name is None:
            raise ValueError("Cannot register a session without a name")
        self.sessions[session.id] = session

    def remove(self, session_id: str) -> Optional[Session]:
        return self.sessions.pop(session_id, None)

    def get(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self.sessions

    def names(self) -> List[str]:
        return [s.name for s in self.sessions.values() if s.name is not None]

    def count(self) -> int:
        return len(self.sessions)
