"""Logging setup for the command line."""

from __future__ import annotations

import logging
import sys
import warnings
from typing import Any, TextIO

from sugar.logging.formatters import SugarFormatter

QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "paramiko")


def _log_warning(
    message: Warning | str,
    category: type[Warning],
    filename: str,
    lineno: int,
    file: TextIO | None = None,
    line: str | None = None,
) -> None:
    logging.getLogger("sugar").warning("%s", message)


def configure_logging(verbose: bool = False, stream: Any = None) -> logging.Handler:
    """Send sugar logs and warnings to stderr.

    Parameters
    ----------
    verbose : bool
        Include debug messages
    stream : Any
        Output stream (default: sys.stderr)

    Returns
    -------
    logging.Handler
        The installed handler
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(SugarFormatter("%(message)s"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("sugar").setLevel(logging.DEBUG if verbose else logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    warnings.showwarning = _log_warning
    return handler


__all__ = ["SugarFormatter", "configure_logging"]
