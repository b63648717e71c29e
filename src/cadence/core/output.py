"""
Unified output system using Loguru.
User-facing messages are written to the log file and either printed or queued
for the control API to hand to clients.
"""

import sys
import threading
from pathlib import Path

from loguru import logger

# Queue mode is active while the control API serves clients
_queue_mode_active = False
_queue_mode_lock = threading.Lock()

# Messages waiting for the presentation layer to collect them
_pending_messages: list[tuple[str, str]] = []
_pending_messages_lock = threading.Lock()
MAX_PENDING_MESSAGES = 50


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru with a rotating file sink and an optional stderr sink.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Rotate once the file reaches this size
        backup_count: Number of rotated files to keep
        console_output: Also log to stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_queue_mode(enabled: bool) -> None:
    """Route log() messages to the pending queue instead of stdout."""
    global _queue_mode_active
    with _queue_mode_lock:
        _queue_mode_active = enabled
    logger.debug(f"Queue mode {'enabled' if enabled else 'disabled'}")


def drain_pending_messages() -> list[tuple[str, str]]:
    """
    Get and clear all pending user-facing messages.

    Returns:
        List of (message, level) tuples, oldest first
    """
    global _pending_messages
    with _pending_messages_lock:
        messages = _pending_messages[:]
        _pending_messages = []
        return messages


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to file AND shows the message to the user.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    with _queue_mode_lock:
        queued = _queue_mode_active

    if queued:
        with _pending_messages_lock:
            _pending_messages.append((message, level))
            # Oldest messages go first when nobody is collecting
            del _pending_messages[:-MAX_PENDING_MESSAGES]
    else:
        print(message)
