from fastapi import Request

from .chat_service import ChatService


def get_chat_service(request: Request) -> ChatService:
    """
    ChatService bound to the running application (set up by create_app).
    """
    return request.app.state.chat_service
