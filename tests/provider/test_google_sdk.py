import threading
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from rapal.errors import ContentPolicyError, GenerationError, UpstreamQuotaError, classify_generation_error
from rapal.provider.base import Conversation, ConversationFactory
from rapal.provider.google_sdk import (
    GeminiChatClient,
    GeminiConversation,
    GoogleSDKError,
    extract_reply_text,
)
from rapal.provider.persona import SYSTEM_INSTRUCTION
from rapal.settings import MissingAPIKeyError
from tests.utils import make_settings


class FakeChat:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.sent: List[str] = []
        self.threads: List[int] = []

    def send_message(self, message: str):
        self.sent.append(message)
        self.threads.append(threading.get_ident())
        if self.error is not None:
            raise self.error
        return self.response


class FakeChats:
    def __init__(self) -> None:
        self.created: List[Dict[str, Any]] = []

    def create(self, **kwargs):
        self.created.append(kwargs)
        return FakeChat(SimpleNamespace(text="Halo dari Gemini"))


class FakeGenAIClient:
    def __init__(self) -> None:
        self.chats = FakeChats()


def _make_client(**overrides) -> GeminiChatClient:
    params = {"api_key": "test-key", "model": "gemini-2.5-flash", "client": FakeGenAIClient()}
    params.update(overrides)
    return GeminiChatClient(**params)


@pytest.mark.asyncio
async def test_send_runs_blocking_call_in_worker_thread():
    chat = FakeChat(SimpleNamespace(text="Jurusan RPL di SMK Negeri 2 Surakarta ..."))
    conversation = GeminiConversation(chat)

    reply = await conversation.send("Apa itu RPL?")

    assert reply.startswith("Jurusan RPL")
    assert chat.sent == ["Apa itu RPL?"]
    assert chat.threads[0] != threading.get_ident()


@pytest.mark.asyncio
async def test_send_wraps_sdk_errors_keeping_description():
    chat = FakeChat(error=RuntimeError("429 RESOURCE_EXHAUSTED: quota exceeded"))
    conversation = GeminiConversation(chat)

    with pytest.raises(GoogleSDKError) as excinfo:
        await conversation.send("Halo")

    assert "quota exceeded" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert isinstance(classify_generation_error(excinfo.value), UpstreamQuotaError)


def test_blocked_prompt_is_reported_as_safety_error():
    response = SimpleNamespace(
        text=None,
        prompt_feedback=SimpleNamespace(block_reason=SimpleNamespace(value="SAFETY")),
        candidates=[],
    )

    with pytest.raises(GoogleSDKError) as excinfo:
        extract_reply_text(response)

    assert "safety" in str(excinfo.value).lower()
    assert isinstance(classify_generation_error(excinfo.value), ContentPolicyError)


def test_safety_finish_reason_is_reported_as_safety_error():
    response = SimpleNamespace(
        text=None,
        prompt_feedback=None,
        candidates=[SimpleNamespace(finish_reason="SAFETY")],
    )

    with pytest.raises(GoogleSDKError, match="reason=SAFETY"):
        extract_reply_text(response)


def test_empty_response_is_a_generic_error():
    response = SimpleNamespace(
        text=None,
        prompt_feedback=None,
        candidates=[SimpleNamespace(finish_reason="STOP")],
    )

    with pytest.raises(GoogleSDKError) as excinfo:
        extract_reply_text(response)

    assert isinstance(classify_generation_error(excinfo.value), GenerationError)


def test_start_conversation_uses_generation_parameters():
    client = _make_client()

    conversation = client.start_conversation()

    assert isinstance(conversation, GeminiConversation)
    assert isinstance(conversation, Conversation)
    assert isinstance(client, ConversationFactory)
    created = client._client.chats.created
    assert len(created) == 1
    kwargs = created[0]
    assert kwargs["model"] == "gemini-2.5-flash"
    assert kwargs["history"] == []
    config = kwargs["config"]
    assert config.temperature == pytest.approx(0.7)
    assert config.top_p == pytest.approx(0.95)
    assert config.top_k == pytest.approx(40)
    assert config.max_output_tokens == 2048
    assert config.system_instruction == SYSTEM_INSTRUCTION


def test_each_conversation_gets_its_own_chat():
    client = _make_client()

    first = client.start_conversation()
    second = client.start_conversation()

    assert first._chat is not second._chat
    assert len(client._client.chats.created) == 2


def test_from_settings_copies_configuration(tmp_path):
    config = make_settings(
        tmp_path,
        gemini_model="gemini-2.0-flash",
        temperature=0.2,
        top_k=10,
    )

    client = GeminiChatClient.from_settings(config, client=FakeGenAIClient())

    assert client.model == "gemini-2.0-flash"
    assert client.temperature == pytest.approx(0.2)
    assert client.top_k == 10
    assert client.max_output_tokens == 2048


def test_from_settings_without_api_key_fails_fast(tmp_path):
    config = make_settings(tmp_path, gemini_api_key=None)

    with pytest.raises(MissingAPIKeyError):
        GeminiChatClient.from_settings(config, client=FakeGenAIClient())


def test_persona_mentions_department():
    assert "RAPal AI" in SYSTEM_INSTRUCTION
    assert "SMK Negeri 2 Surakarta" in SYSTEM_INSTRUCTION
