"""
Rate-limited logging for repeated per-chain degradations.

Reconciling a long transaction list against a misconfigured chain would
otherwise emit the same warning once per record on every call.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_log_cache: TTLCache = TTLCache(maxsize=256, ttl=300)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    key: str,
    message: str,
    level: str = "warning",
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log ``message`` unless a message with the same key was logged recently.

    Args:
        key: Deduplication key (e.g. ``"unknown-chain:167"``)
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was logged, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)

    cache_key = f"{level}:{key}"
    with _log_cache_lock:
        if cache_key in _log_cache:
            return False
        _log_cache[cache_key] = True

    log_method(message)
    return True


def reset_rate_limited_log() -> None:
    """Forget every suppressed key."""
    with _log_cache_lock:
        _log_cache.clear()
