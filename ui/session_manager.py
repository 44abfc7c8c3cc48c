"""
Session Manager
===============
Keeps one ListingSession per browser tab in memory. Sessions live as long
as the server process; nothing is written to disk.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from listing_generator.master_pipeline import ListingSession

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

MAX_SESSIONS = 200


# In-memory session store, insertion-ordered (oldest first)
_sessions: Dict[str, ListingSession] = {}
_created_at: Dict[str, str] = {}


def create_session(llm_factory: Callable[[], object]) -> str:
    session_id = str(uuid.uuid4())[:8]
    while session_id in _sessions:
        session_id = str(uuid.uuid4())[:8]

    session = ListingSession(llm_factory())

    if len(_sessions) >= MAX_SESSIONS:
        oldest = next(iter(_sessions))
        print(f"[sessions] Evicting oldest session {oldest}")
        drop_session(oldest)

    _sessions[session_id] = session
    _created_at[session_id] = datetime.now().isoformat()
    return session_id


def get_session(session_id: str) -> Optional[ListingSession]:
    return _sessions.get(session_id)


def drop_session(session_id: str) -> bool:
    _created_at.pop(session_id, None)
    return _sessions.pop(session_id, None) is not None


def get_all_sessions() -> List[Dict[str, object]]:
    return [
        {
            "sessionId": sid,
            "createdAt": _created_at.get(sid),
            "status": session.status,
            "generation": session.generation,
        }
        for sid, session in _sessions.items()
    ]


def clear_sessions() -> None:
    _sessions.clear()
    _created_at.clear()
