from .base import Conversation, ConversationFactory
from .google_sdk import GeminiChatClient, GeminiConversation, GoogleSDKError

__all__ = [
    "Conversation",
    "ConversationFactory",
    "GeminiChatClient",
    "GeminiConversation",
    "GoogleSDKError",
]
