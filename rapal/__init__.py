"""
RAPal AI: chat relay for the RPL department of SMK Negeri 2 Surakarta.

This package contains:
- settings: configuration loaded from the environment / .env
- logging_config: shared logging setup
- sessions: in-process session store with idle eviction
- sweeper: periodic idle-session sweep
- chat_service: validation, rate limiting and reply generation
- provider: Gemini conversation client behind a minimal interface
- routes: FastAPI app factory and exception handlers
- serverless: the same app shaped for serverless functions
"""
