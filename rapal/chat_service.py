"""
Chat request handling: validation, session bookkeeping, rate limiting and
delegation of the reply to the session's model conversation.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Optional

from rapal.errors import (
    ChatReplyError,
    EmptyMessageError,
    InvalidMessageError,
    InvalidSessionIdError,
    MessageTooLongError,
    RateLimitExceededError,
    classify_generation_error,
)
from rapal.logging_config import logger
from rapal.sessions import SessionStore
from rapal.sweeper import SessionSweeper


@dataclass
class ChatResult:
    reply: str
    session_id: str


@dataclass
class HealthSnapshot:
    status: str
    timestamp: str
    sessions: int


def validate_message(message: Any, *, max_length: int) -> str:
    """
    Check an inbound message, first failure wins: not a string, blank after
    trimming, longer than ``max_length``.
    """
    if not isinstance(message, str) or not message:
        raise InvalidMessageError()
    if not message.strip():
        raise EmptyMessageError()
    if message_length(message) > max_length:
        raise MessageTooLongError(max_length)
    return message


def message_length(message: str) -> int:
    """Length in UTF-16 code units, the way browsers count characters."""
    return len(message.encode("utf-16-le", "surrogatepass")) // 2


def utc_timestamp() -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChatService:
    def __init__(
        self,
        store: SessionStore,
        *,
        max_messages_per_session: int = 100,
        max_message_length: int = 5000,
        default_session_id: str = "default",
        sweeper: Optional[SessionSweeper] = None,
    ) -> None:
        self.store = store
        self.max_messages_per_session = max_messages_per_session
        self.max_message_length = max_message_length
        self.default_session_id = default_session_id
        # Only set for request-driven sweeping (serverless).
        self.sweeper = sweeper

    def resolve_session_id(self, session_id: Any) -> str:
        if session_id is None:
            return self.default_session_id
        if not isinstance(session_id, str):
            raise InvalidSessionIdError()
        return session_id

    async def chat(self, message: Any, session_id: Any = None) -> ChatResult:
        message = validate_message(message, max_length=self.max_message_length)
        session_id = self.resolve_session_id(session_id)

        if self.sweeper is not None:
            self.sweeper.sweep_if_due()

        session = self.store.get_or_create(session_id)
        # Counted before generation: failed attempts still use up the quota.
        self.store.touch(session)
        if session.message_count > self.max_messages_per_session:
            logger.warning(
                "Session %s rate limited after %d messages",
                session_id,
                session.message_count,
            )
            raise RateLimitExceededError()

        async with session.lock:
            try:
                reply = await session.conversation.send(message)
            except ChatReplyError:
                raise
            except Exception as exc:
                logger.exception("Generation failed for session %s", session_id)
                raise classify_generation_error(exc) from exc

        logger.info(
            "Session %s reply generated (messages=%d, reply_chars=%d)",
            session_id,
            session.message_count,
            len(reply),
        )
        return ChatResult(reply=reply, session_id=session_id)

    def reset(self, session_id: Any = None) -> bool:
        if session_id is not None and not isinstance(session_id, str):
            return False
        return self.store.remove(self.resolve_session_id(session_id))

    def health(self) -> HealthSnapshot:
        return HealthSnapshot(status="OK", timestamp=utc_timestamp(), sessions=len(self.store))


__all__ = [
    "ChatResult",
    "ChatService",
    "HealthSnapshot",
    "message_length",
    "utc_timestamp",
    "validate_message",
]
