"""
Logging Configuration for monad-deploy

Provides structured logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- Optional file rotation (1 file per day) and a separate error log
- A console handler whose stream is selectable, so the MCP server can keep
  stdout free for protocol frames
"""

import logging
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO


# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str,
    level: int = logging.INFO,
    stream: Optional[TextIO] = None,
    log_dir: Optional[Path] = None,
    detailed: bool = False,
) -> logging.Logger:
    """
    Setup a logger with a console handler and optional file handlers.

    Args:
        name: Logger name ("monad_deploy" configures the whole package)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Console stream (defaults to stderr)
        log_dir: Directory for rotating log files; no files are written when None
        detailed: Whether to use detailed format (includes file/line)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("monad_deploy", level=logging.DEBUG)
        >>> logger.info("Compiling SimpleStorage")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is None:
        return logger

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # File handler with daily rotation
    file_handler = TimedRotatingFileHandler(
        log_dir / f"{name}.log",
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days of logs
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Separate error log
    error_handler = RotatingFileHandler(
        log_dir / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


def log_deployment(
    logger: logging.Logger,
    contract_name: str,
    address: Optional[str],
    tx_hash: Optional[str],
    success: bool = True,
    error: Optional[str] = None,
):
    """
    Log a deployment in structured format.

    Args:
        logger: Logger instance
        contract_name: Name of the deployed contract
        address: Deployed address (None on failure)
        tx_hash: Transaction hash, if one was broadcast
        success: Whether the deployment succeeded
        error: Failure reason
    """
    status = "SUCCESS" if success else "FAILED"
    msg = f"{status} | DEPLOY | {contract_name}"
    if address:
        msg += f" | Address: {address}"
    if tx_hash:
        msg += f" | TX: {tx_hash}"
    if error:
        msg += f" | Error: {error}"

    if success:
        logger.info(msg)
    else:
        logger.error(msg)


def get_cli_logger(debug: bool = False, log_dir: Optional[Path] = None) -> logging.Logger:
    """Get the package logger for command line use."""
    level = logging.DEBUG if debug else logging.INFO
    return setup_logger("monad_deploy", level=level, log_dir=log_dir, detailed=debug)


def get_server_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get the package logger for the MCP server; always writes to stderr."""
    return setup_logger("monad_deploy", level=logging.INFO, stream=sys.stderr, log_dir=log_dir)
