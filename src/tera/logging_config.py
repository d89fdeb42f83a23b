"""
Diagnostics for hosts embedding the interpreter.

Every module logs to a child of the "tera" logger; nothing is printed until
a host calls setup_logging(). Program output never goes through logging, it
is written to the interpreter's sink.
"""
from typing import Optional
import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route "tera" diagnostics to stderr and, with log_file, to that file too.

    Calling it again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger("tera")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("tera logging at level %s", logging.getLevelName(level))
    return logger
