"""Runtime settings for configwatch.

Every setting has a default that can be overridden through an environment
variable. Values are read when they are needed rather than at import time
so that long running processes pick up the environment they were started
with and tests can patch it.
"""
import logging
import os
import sys

from typing import Optional, IO  # noqa


LOGGER = logging.getLogger(__name__)

DEFAULT_ARM_TIMEOUT = 10.0
DEFAULT_JOIN_TIMEOUT = 5.0
DEFAULT_LOG_LEVEL = 'WARNING'

ARM_TIMEOUT_ENV = 'CONFIGWATCH_ARM_TIMEOUT'
JOIN_TIMEOUT_ENV = 'CONFIGWATCH_JOIN_TIMEOUT'
LOG_LEVEL_ENV = 'CONFIGWATCH_LOG_LEVEL'

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def env_float(name, default):
    # type: (str, float) -> float
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("Invalid value for %s: %r, using %s",
                       name, raw, default)
        return default
    if value <= 0:
        LOGGER.warning("%s must be positive, got %r, using %s",
                       name, raw, default)
        return default
    return value


def arm_timeout():
    # type: () -> float
    """Seconds ``add_path`` waits for a directory watch to be armed."""
    return env_float(ARM_TIMEOUT_ENV, DEFAULT_ARM_TIMEOUT)


def join_timeout():
    # type: () -> float
    """Seconds to wait for watch threads when stopping them."""
    return env_float(JOIN_TIMEOUT_ENV, DEFAULT_JOIN_TIMEOUT)


def log_level():
    # type: () -> int
    raw = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        LOGGER.warning("Invalid value for %s: %r, using %s",
                       LOG_LEVEL_ENV, raw, DEFAULT_LOG_LEVEL)
        return logging.getLevelName(DEFAULT_LOG_LEVEL)
    return level


def setup_logging(level=None, stream=None):
    # type: (Optional[int], Optional[IO[str]]) -> logging.Logger
    """Attach a stream handler to the ``configwatch`` logger.

    Used by the command line entry point; library users are expected to
    configure logging themselves. Calling it again only updates the level.
    """
    if level is None:
        level = log_level()
    logger = logging.getLogger('configwatch')
    if not any(getattr(h, '_configwatch', False) for h in logger.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._configwatch = True  # type: ignore
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
