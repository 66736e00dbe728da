"""
Gemini conversations via the official google-genai SDK.

The SDK's chat object keeps the multi-turn history internally; each
GeminiConversation owns one of them. The SDK call itself is blocking, so
it runs in a worker thread to keep the event loop free.
"""

from __future__ import annotations

from typing import Any, Optional

import anyio

from rapal.logging_config import logger
from rapal.provider.persona import SYSTEM_INSTRUCTION
from rapal.settings import Settings

_SAFETY_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}


class GoogleSDKError(Exception):
    """Raised when the google-genai SDK is unavailable or returns an error."""


def _create_client(api_key: str):
    try:
        from google import genai  # type: ignore
    except ImportError as exc:  # pragma: no cover - import guard
        raise GoogleSDKError(
            "google-genai is not installed, run: pip install google-genai"
        ) from exc

    try:
        return genai.Client(api_key=api_key)
    except Exception as exc:  # pragma: no cover
        raise GoogleSDKError(f"failed to initialise google-genai client: {exc}") from exc


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _blocked_reason(response: Any) -> Optional[str]:
    """
    Return the safety-related reason a response carries no text, if any.
    """
    feedback = getattr(response, "prompt_feedback", None)
    reason = _enum_name(getattr(feedback, "block_reason", None))
    if reason:
        return reason
    for candidate in getattr(response, "candidates", None) or []:
        finish = _enum_name(getattr(candidate, "finish_reason", None))
        if finish in _SAFETY_REASONS:
            return finish
    return None


def extract_reply_text(response: Any) -> str:
    """
    Pull the reply text out of a GenerateContentResponse.

    An empty response is an error: when Gemini blocked the turn the error
    description mentions "safety" so the caller can classify it.
    """
    text = getattr(response, "text", None)
    if isinstance(text, str) and text:
        return text
    reason = _blocked_reason(response)
    if reason:
        raise GoogleSDKError(
            f"Gemini response blocked by safety filters (reason={reason})"
        )
    raise GoogleSDKError("Gemini returned an empty response")


class GeminiConversation:
    """One Gemini chat session; history lives inside the SDK chat object."""

    def __init__(self, chat: Any) -> None:
        self._chat = chat

    async def send(self, text: str) -> str:
        try:
            response = await anyio.to_thread.run_sync(self._chat.send_message, text)
        except Exception as exc:
            raise GoogleSDKError(f"google-genai send_message failed: {exc}") from exc
        return extract_reply_text(response)


class GeminiChatClient:
    """
    Conversation factory bound to one model and one set of generation
    parameters.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        top_p: float = 0.95,
        top_k: int = 40,
        max_output_tokens: int = 2048,
        system_instruction: str = SYSTEM_INSTRUCTION,
        client: Any = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.top_k = top_k
        self.max_output_tokens = max_output_tokens
        self.system_instruction = system_instruction
        self._client = client if client is not None else _create_client(api_key)

    @classmethod
    def from_settings(cls, config: Settings, *, client: Any = None) -> "GeminiChatClient":
        return cls(
            api_key=config.require_api_key(),
            model=config.gemini_model,
            temperature=config.temperature,
            top_p=config.top_p,
            top_k=config.top_k,
            max_output_tokens=config.max_output_tokens,
            client=client,
        )

    def generation_config(self):
        from google.genai import types  # type: ignore

        return types.GenerateContentConfig(
            system_instruction=self.system_instruction,
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_output_tokens=self.max_output_tokens,
        )

    def start_conversation(self) -> GeminiConversation:
        chat = self._client.chats.create(
            model=self.model,
            config=self.generation_config(),
            history=[],
        )
        logger.debug("Started Gemini conversation model=%s", self.model)
        return GeminiConversation(chat)


__all__ = [
    "GeminiChatClient",
    "GeminiConversation",
    "GoogleSDKError",
    "extract_reply_text",
]
