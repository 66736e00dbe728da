"""
Test doubles shared across the suite: a controllable clock and a fake
conversation factory standing in for the Gemini client.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rapal.settings import Settings


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeConversation:
    def __init__(self, factory: "FakeConversationFactory", index: int) -> None:
        self.factory = factory
        self.index = index
        self.history: List[str] = []

    async def send(self, text: str) -> str:
        self.factory.events.append(("start", self.index, text))
        delay = self.factory.delays.get(text, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if self.factory.error is not None:
            self.factory.events.append(("error", self.index, text))
            raise self.factory.error
        self.history.append(text)
        self.factory.events.append(("end", self.index, text))
        return f"Balasan RAPal untuk: {text}"


class FakeConversationFactory:
    """
    Stand-in for GeminiChatClient: records every turn and can be told to
    delay specific messages or fail all of them.
    """

    def __init__(self) -> None:
        self.conversations: List[FakeConversation] = []
        self.events: List[Tuple[str, int, str]] = []
        self.delays: Dict[str, float] = {}
        self.error: Optional[BaseException] = None

    def start_conversation(self) -> FakeConversation:
        conversation = FakeConversation(self, len(self.conversations))
        self.conversations.append(conversation)
        return conversation

    def sent_texts(self) -> List[str]:
        return [text for kind, _, text in self.events if kind == "start"]


def make_settings(tmp_path: Path, **overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "gemini_api_key": "test-key",  # pragma: allowlist secret
        "environment": "production",
        "log_to_file": False,
        "static_dir": str(tmp_path / "no-static"),
        "frontend_url": "*",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
