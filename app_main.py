"""Application entry point for the QuizHost server."""

from __future__ import annotations

from quiz_host.constants.about import APP_NAME, APP_VERSION
from quiz_host.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_host.core.session_manager import SessionManager
from quiz_host.server.api_server import start_api_server
from quiz_host.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, build the session manager and serve the API until interrupted."""
    logger = configure_logging()
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    session_manager = SessionManager()
    server_thread = start_api_server(session_manager=session_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)
    logger.info("API available at http://%s:%d/docs", DEFAULT_HOST, DEFAULT_PORT)
    try:
        server_thread.join()
    except KeyboardInterrupt:
        logger.info("Shutting down")
        session_manager.clear()


if __name__ == "__main__":
    main()
