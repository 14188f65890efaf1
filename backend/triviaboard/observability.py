"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from triviaboard import __version__
from triviaboard.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app=None) -> bool:
    """
    Initialize Logfire for the CLI or the relay server.

    Must be called ONCE at startup, before any broadcast traffic flows.

    Instruments:
    - Python logging (bridges to Logfire)
    - HTTPX clients (persistence API)
    - FastAPI, when an app is given

    Args:
        settings: Application settings containing the Logfire token
        app: Optional FastAPI application to instrument

    Returns:
        True if Logfire was configured, False otherwise.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="triviaboard",
            service_version=__version__,
        )

        logfire.instrument_httpx()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        if app is not None:
            try:
                logfire.instrument_fastapi(app)
            except Exception as fastapi_error:
                logger.debug(f"FastAPI instrumentation skipped: {fastapi_error}")

        logger.info("Logfire cloud tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
