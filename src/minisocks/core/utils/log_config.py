"""Logging configuration for the proxy server.

Logging goes through Loguru: a colored console sink and a rotating file sink.
Connection handlers bind the client address into ``extra["client"]`` so every
line of a connection can be told apart.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_DIR = Path.home() / ".minisocks" / "logs"


def setup_logging(debug: bool = False, log_file: bool = True, log_dir: Path = LOG_DIR) -> None:
    """Replace Loguru's default handler with the proxy's sinks.

    Args:
        debug: Log DEBUG and above to the console instead of INFO
        log_file: Also write a rotated log file in ``log_dir``
        log_dir: Directory for the log file
    """
    logger.remove()  # Remove default handler
    logger.configure(extra={"client": "-"})

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<magenta>{extra[client]}</magenta> | "
            "<level>{message}</level>"
        ),
        level="DEBUG" if debug else "INFO",
        backtrace=debug,
        diagnose=debug,
    )

    if log_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "proxy.log",
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=(
                "{time:YYYY-MM-DD HH:mm:ss} | "
                "{level: <8} | "
                "{extra[client]} | "
                "{name}:{function}:{line} - "
                "{message}"
            ),
            level="DEBUG",
        )
