from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.chat_routes import router as chat_router
from .chat_service import ChatService
from .errors import ChatReplyError, ErrorReply, InvalidMessageError, reply_error_response
from .logging_config import logger
from .provider.base import ConversationFactory
from .provider.google_sdk import GeminiChatClient
from .schemas import NotFoundResponse
from .sessions import SessionStore
from .settings import Settings, settings as default_settings
from .sweeper import SessionSweeper


def build_session_store(
    config: Settings,
    conversation_factory: Optional[ConversationFactory] = None,
) -> SessionStore:
    """
    "Create store" hook. Without an explicit factory the real Gemini client
    is built, which fails fast when GEMINI_API_KEY is missing.
    """
    factory = conversation_factory or GeminiChatClient.from_settings(config)
    return SessionStore(factory, idle_threshold=config.session_idle_timeout_seconds)


def _install_exception_handlers(app: FastAPI, config: Settings) -> None:
    @app.exception_handler(ChatReplyError)
    async def handle_chat_reply_error(request: Request, exc: ChatReplyError):
        return reply_error_response(exc, expose_detail=config.is_development)

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_body(request: Request, exc: RequestValidationError):
        logger.warning(
            "Rejected malformed body on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
        )
        return reply_error_response(InvalidMessageError())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Unknown paths and wrong methods on known paths both look like a
        # missing endpoint to the frontend.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            payload = NotFoundResponse(error="Endpoint tidak ditemukan", path=request.url.path)
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=payload.model_dump())
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorReply(reply=str(exc.detail)).model_dump(exclude_none=True),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(
            "Unhandled error %s %s",
            request.method,
            request.url.path,
        )
        payload = ErrorReply(reply="Terjadi kesalahan pada server")
        if config.is_development:
            payload.error = str(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=payload.model_dump(exclude_none=True),
        )


def create_app(
    config: Optional[Settings] = None,
    *,
    store: Optional[SessionStore] = None,
    conversation_factory: Optional[ConversationFactory] = None,
    background_sweep: bool = True,
    route_prefixes: Sequence[str] = ("",),
    serve_static: bool = True,
) -> FastAPI:
    """
    Build the RAPal AI application.

    ``store`` / ``conversation_factory`` let tests run against fakes.
    With ``background_sweep`` off, idle sessions are swept from the request
    path instead of a lifespan task (serverless deployments).
    """
    config = config or default_settings
    if store is None:
        store = build_session_store(config, conversation_factory)
    sweeper = SessionSweeper(store, interval=config.session_sweep_interval_seconds)
    chat_service = ChatService(
        store,
        max_messages_per_session=config.max_messages_per_session,
        max_message_length=config.max_message_length,
        default_session_id=config.default_session_id,
        sweeper=None if background_sweep else sweeper,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        - startup: start the idle-session sweeper
        - shutdown: stop the sweeper and drop every session ("shutdown store")
        """
        if background_sweep:
            sweeper.start()
        logger.info(
            "RAPal AI ready (model=%s, environment=%s)",
            config.gemini_model,
            config.environment,
        )
        try:
            yield
        finally:
            await sweeper.stop()
            store.close()

    app = FastAPI(title="RAPal AI", version="1.0.0", lifespan=lifespan)
    app.state.settings = config
    app.state.store = store
    app.state.sweeper = sweeper
    app.state.chat_service = chat_service

    _install_exception_handlers(app, config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Basic request/response logging middleware.
        """
        client_host = request.client.host if request.client else "-"
        logger.info("HTTP %s %s from %s", request.method, request.url.path, client_host)
        response = await call_next(request)
        logger.info(
            "HTTP %s %s -> %s", request.method, request.url.path, response.status_code
        )
        return response

    for prefix in route_prefixes:
        app.include_router(chat_router, prefix=prefix)

    # Mounted last so API routes win over files with the same path.
    static_dir = Path(config.static_dir)
    if serve_static and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
        logger.info("Serving static files from %s", static_dir.resolve())

    return app


__all__ = ["build_session_store", "create_app"]
