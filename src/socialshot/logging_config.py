"""Logging setup for the socialshot CLI."""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")


def setup_logging(debug: bool = False) -> logging.Logger:
    """Route socialshot's per-item progress lines to stderr.

    Safe to call more than once: the package logger is reset each time, so
    repeated CLI invocations in one process never duplicate output. Request
    logging from the HTTP stack only shows up with `debug`.
    """

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    package_logger = logging.getLogger("socialshot")
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
    return package_logger
