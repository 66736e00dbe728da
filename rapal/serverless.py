"""
Serverless entry shape (e.g. a Vercel Python function under ``api/``).

Uses the same SessionStore and ChatService as the long-running server.
Routes are exposed both at the root and under ``/api``; ``GET /api`` is a
health check and ``POST /api`` is the chat endpoint. Background tasks do
not survive between invocations, so idle sessions are swept from the
request path.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .api.chat_routes import chat_endpoint, health_endpoint
from .errors import ErrorReply
from .provider.base import ConversationFactory
from .schemas import ChatResponse, HealthResponse
from .sessions import SessionStore
from .settings import Settings, settings as default_settings
from .routes import create_app

API_PREFIX = "/api"


def create_serverless_app(
    config: Optional[Settings] = None,
    *,
    store: Optional[SessionStore] = None,
    conversation_factory: Optional[ConversationFactory] = None,
) -> FastAPI:
    config = config or default_settings
    app = create_app(
        config,
        store=store,
        conversation_factory=conversation_factory,
        background_sweep=False,
        route_prefixes=("", API_PREFIX),
        serve_static=False,
    )
    app.add_api_route(
        API_PREFIX,
        health_endpoint,
        methods=["GET"],
        response_model=HealthResponse,
        tags=["chat"],
    )
    app.add_api_route(
        API_PREFIX,
        chat_endpoint,
        methods=["POST"],
        response_model=ChatResponse,
        responses={400: {"model": ErrorReply}, 429: {"model": ErrorReply}},
        tags=["chat"],
    )
    return app


__all__ = ["API_PREFIX", "create_serverless_app"]
