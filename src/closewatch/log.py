from __future__ import annotations

import functools
import logging
import os
import time
from collections.abc import Callable
from typing import cast

from closewatch.utils import first_some

DEFAULT_LOG_FILE = "closewatch.log"
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s]: %(message)s"


TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")


class MyLogger(logging.Logger):
    def __init__(self, name: str) -> None:
        super().__init__(name)

    def trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, msg, args, **kwargs)

    def trace_lazy(self, msg_call: Callable[[], str], *args, **kwargs):
        """
        Log a message lazily, only evaluating the message when the trace log level
        is enabled.
        """
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, msg_call(), args, **kwargs)


logging.setLoggerClass(MyLogger)


def getLogger(name: str) -> MyLogger:
    return cast(MyLogger, logging.getLogger(name))


_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "TRACE": TRACE_LEVEL,
}


def _eval_log_level(level: str | None) -> int:
    if level is None:
        return DEFAULT_LOG_LEVEL

    return _LOG_LEVELS.get(level.upper(), DEFAULT_LOG_LEVEL)


def set_logger(logfile: str | None, loglevel: str | None) -> None:
    """
    Logs to a file only. stdout is reserved for the report and stderr for the
    errors shown to the user.
    """

    logfile = os.path.expanduser(first_some(logfile, DEFAULT_LOG_FILE))

    logging.basicConfig(
        level=_eval_log_level(loglevel),
        format=DEFAULT_LOG_FORMAT,
        handlers=[logging.FileHandler(logfile)],
    )


def log_func_call(func):
    """Logs the arguments of each call and how long it took."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = getLogger(func.__module__)
        logger.trace(f"Calling {func.__qualname__}; {args=}; {kwargs=}")

        start = time.monotonic()
        res = func(*args, **kwargs)
        logger.debug(f"{func.__qualname__} took {time.monotonic() - start:.3f}s")

        return res

    return wrapper
