"""
In-process session store for chat conversations.

Each session owns one model conversation plus the bookkeeping used for
rate limiting and idle eviction. The store is meant to be driven from a
single asyncio event loop: none of its methods await, so each call runs
to completion before another request or the sweeper can observe the
mapping.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

from rapal.logging_config import logger
from rapal.provider.base import Conversation, ConversationFactory

Clock = Callable[[], float]


@dataclass
class Session:
    id: str
    conversation: Conversation
    created_at: float
    last_activity: float
    message_count: int = 0
    # Held across the model call so turns for one session stay in order.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class SessionStore:
    def __init__(
        self,
        conversation_factory: ConversationFactory,
        *,
        idle_threshold: float = 1800.0,
        clock: Clock = time.time,
    ) -> None:
        self._factory = conversation_factory
        self._clock = clock
        self.idle_threshold = idle_threshold
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))

    def now(self) -> float:
        return self._clock()

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> Session:
        """
        Return the session for ``session_id``, creating it with a fresh
        empty-history conversation on first use.
        """
        session = self._sessions.get(session_id)
        if session is not None:
            return session
        now = self._clock()
        session = Session(
            id=session_id,
            conversation=self._factory.start_conversation(),
            created_at=now,
            last_activity=now,
        )
        self._sessions[session_id] = session
        logger.info("Session created: %s (live=%d)", session_id, len(self._sessions))
        return session

    def touch(self, session: Session) -> None:
        """Record one accepted message against ``session``."""
        session.last_activity = max(session.last_activity, self._clock())
        session.message_count += 1

    def remove(self, session_id: str) -> bool:
        existed = self._sessions.pop(session_id, None) is not None
        if existed:
            logger.info("Session removed: %s", session_id)
        return existed

    def sweep(
        self,
        now: Optional[float] = None,
        idle_threshold: Optional[float] = None,
    ) -> List[str]:
        """
        Evict sessions idle for strictly longer than ``idle_threshold``.
        A session idle for exactly the threshold is kept, and so is one
        whose lock is held by a turn still waiting on the model.
        """
        now = self._clock() if now is None else now
        threshold = self.idle_threshold if idle_threshold is None else idle_threshold
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if now - session.last_activity > threshold and not session.lock.locked()
        ]
        for session_id in expired:
            del self._sessions[session_id]
            logger.info("Session %s removed after being idle", session_id)
        return expired

    def close(self) -> None:
        """Drop every session; used on application shutdown."""
        count = len(self._sessions)
        self._sessions.clear()
        if count:
            logger.info("Session store closed, dropped %d session(s)", count)


__all__ = ["Clock", "Session", "SessionStore"]
