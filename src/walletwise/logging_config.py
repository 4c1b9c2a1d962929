"""structlog configuration for the walletwise command line."""

import logging

import structlog

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def configure_logging(level: str = "WARNING") -> None:
    """Route structlog events through the ``walletwise`` stdlib logger.

    Events go to stderr so command output on stdout stays parseable.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)

    Raises:
        ValueError: If the level name is unknown
    """
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}'. Choose from: {', '.join(LOG_LEVELS)}")

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("walletwise")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
