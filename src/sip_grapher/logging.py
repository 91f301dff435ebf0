"""Logging configuration for sip-grapher.

Provides centralized logging setup with file output to ~/sip-grapher/logs/.
"""

import logging
import sys
from pathlib import Path

# Default log directory
DEFAULT_LOG_DIR = Path.home() / "sip-grapher" / "logs"

ROOT_LOGGER_NAME = "sip_grapher"


def setup_logging(
    name: str,
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Configure logging for the sip-grapher package.

    Handlers are attached to the package logger so that every module logger
    obtained through get_logger() writes to the same destinations.
    Log files are written to ~/sip-grapher/logs/<name>.log.

    Args:
        name: Component name (used for log filename)
        log_dir: Directory for log files (defaults to ~/sip-grapher/logs/)
        level: Logging level (defaults to INFO)
        console: Whether to also log to stderr (defaults to True)

    Returns:
        Configured package logger
    """
    if log_dir is None:
        log_dir = DEFAULT_LOG_DIR

    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Avoid adding duplicate handlers if already configured
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_dir / f"{name}.log", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a sip-grapher component.

    Args:
        name: Logger name (will be prefixed with 'sip_grapher.')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def narrate(logger: logging.Logger, verbose: bool, msg: str, *args: object) -> None:
    """Log a scan decision, at INFO when verbose narration is on, else DEBUG."""
    logger.log(logging.INFO if verbose else logging.DEBUG, msg, *args)
