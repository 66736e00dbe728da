"""
Minimal capability interfaces for the generative model collaborator.

The rest of the relay only needs to open a conversation and submit text
turns to it, so any provider that can do that plugs in here.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Conversation(Protocol):
    """A stateful multi-turn conversation owned by exactly one session."""

    async def send(self, text: str) -> str:
        """Submit one user turn and return the model's text reply."""
        ...


@runtime_checkable
class ConversationFactory(Protocol):
    """Creates conversations with an empty history."""

    def start_conversation(self) -> Conversation:
        ...


__all__ = ["Conversation", "ConversationFactory"]
