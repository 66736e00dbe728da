from rapal.logging_config import logger, setup_logging
from rapal.routes import create_app
from rapal.settings import MissingAPIKeyError, settings


# Configure logging once for the whole process.
setup_logging()

# FastAPI application instance for uvicorn; refuse to start without a key.
try:
    app = create_app()
except MissingAPIKeyError as exc:
    logger.error("ERROR: %s", exc)
    raise SystemExit(1) from exc


def run() -> None:
    import uvicorn

    logger.info("Server RAPal AI berjalan di http://localhost:%s", settings.port)
    logger.info("Health check: http://localhost:%s/health", settings.port)
    # Use our own logging configuration configured in rapal.logging_config.
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
