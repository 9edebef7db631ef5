"""Logging configuration for dupe."""

from __future__ import annotations

import logging


class _PrefixWarningsFormatter(logging.Formatter):
    """Plain messages for progress output, ``level: message`` for problems."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname.lower()}: {message}"
        return message


def configure_logging(verbose: bool = False, quiet: bool = False, stream=None) -> logging.Handler:
    """Configure the dupe root logger and return the installed handler.

    Verbose mode logs everything down to DEBUG with the level name on every
    line; quiet mode keeps only warnings and errors.
    """
    if verbose:
        level = logging.DEBUG
        formatter = logging.Formatter("%(levelname)s: %(message)s")
    elif quiet:
        level = logging.WARNING
        formatter = _PrefixWarningsFormatter("%(message)s")
    else:
        level = logging.INFO
        formatter = _PrefixWarningsFormatter("%(message)s")

    root_logger = logging.getLogger("dupe")
    root_logger.handlers.clear()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    return handler
