"""Utility functions for sugar."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import Any

from sugar.constants import DEFAULT_NAME_COLUMN_WIDTH
from sugar.core.models import Instance


def log_and_print_error(message: str, *args: Any) -> None:
    """Log error message and print to stderr.

    Parameters
    ----------
    message : str
        Error message with optional format placeholders
    *args : Any
        Format arguments for message
    """
    logging.getLogger("sugar").debug(message, *args)
    formatted_msg = message % args if args else message
    print(f"sugar: {formatted_msg}", file=sys.stderr)


def truncate_name(name: str, max_width: int = DEFAULT_NAME_COLUMN_WIDTH) -> str:
    """Truncate name to fit in column width.

    Parameters
    ----------
    name : str
        Name to truncate
    max_width : int
        Maximum width for name (default: DEFAULT_NAME_COLUMN_WIDTH)

    Returns
    -------
    str
        Truncated name with ellipsis if exceeds max_width, otherwise original name
    """
    if len(name) > max_width:
        return name[: max_width - 3] + "..."

    return name


def format_instance_rows(
    instances: Sequence[Instance], with_index: bool = False
) -> list[str]:
    """Format instances as aligned rows of id, name and address.

    Parameters
    ----------
    instances : Sequence[Instance]
        Instances to format, in display order
    with_index : bool
        Prefix every row with its zero-based selection index

    Returns
    -------
    list[str]
        One line per instance, without trailing newlines
    """
    width = len(str(max(len(instances) - 1, 0)))
    rows = []

    for index, instance in enumerate(instances):
        name = truncate_name(instance.name or "-")
        row = f"{instance.instance_id:<20} {name:<{DEFAULT_NAME_COLUMN_WIDTH}} {instance.display_address}"
        if with_index:
            row = f"{index:>{width}}: {row}"
        rows.append(row.rstrip())

    return rows
