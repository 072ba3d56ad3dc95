"""Logging configuration for sharptask."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

NAMESPACE = "sharptask"

# Terminal output stays short; the log file carries timestamps
STDERR_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    verbose: int = 0,
    log_file: Path | None = None,
    command: str | None = None,
) -> None:
    """Configure logging based on verbosity level and optional file output.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        verbose: Verbosity level (0=off, 1=INFO, 2+=DEBUG)
        log_file: Optional path to write logs to file
        command: Sync direction being run, shown in the startup banner
    """
    logger = logging.getLogger(NAMESPACE)
    for handler in [h for h in logger.handlers if getattr(h, "_sharptask", False)]:
        logger.removeHandler(handler)
        handler.close()

    if verbose == 0 and log_file is None:
        return

    level = logging.DEBUG if verbose >= 2 else logging.INFO
    logger.setLevel(level)

    if verbose > 0:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(STDERR_FORMAT))
        _install(logger, stderr_handler, level)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        _install(logger, file_handler, level)

    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("=" * 60)
    logger.info(
        "sharptask %s | %s | level=%s",
        command or "starting",
        timestamp,
        logging.getLevelName(level),
    )
    logger.info("=" * 60)


def _install(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler._sharptask = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
