"""Serverless function entry point; exposes the ASGI ``app``."""

from rapal.logging_config import setup_logging
from rapal.serverless import create_serverless_app
from rapal.settings import settings

# Serverless filesystems are read-only outside /tmp; log to the console only.
settings.log_to_file = False
setup_logging(settings)

app = create_serverless_app(settings)
