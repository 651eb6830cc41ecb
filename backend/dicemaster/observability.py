"""Logfire cloud observability initialization."""

import logging

import logfire

from dicemaster import __version__
from dicemaster.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings) -> None:
    """
    Initialize Logfire and bridge Python logging to it.

    Must be called once at startup, before any engine call is made.
    Without a token this is a no-op and records stay in local logs only.
    """
    if not settings.logfire_token:
        logger.debug("Logfire token not set - observability disabled")
        return

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="dicemaster",
            service_version=__version__,
        )

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("Logfire cloud tracking initialized")

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
