"""AWS-specific utility functions for sugar."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def iter_reservation_instances(pages: Iterable[dict[str, Any]]) -> Iterable[dict[str, Any]]:
    """Yield every instance of every reservation of ``describe_instances`` pages.

    Parameters
    ----------
    pages : Iterable[dict[str, Any]]
        Responses (or paginator pages) from boto3 describe_instances

    Yields
    ------
    dict[str, Any]
        Instance dictionaries in response order
    """
    for page in pages:
        for reservation in page.get("Reservations", []):
            yield from reservation.get("Instances", [])


def get_aws_credentials_error_message() -> str:
    """Get standard AWS credentials error message.

    Returns
    -------
    str
        Formatted AWS credentials error message
    """
    return (
        "Cloud credentials not found\n\n"
        "Configure your credentials:\n"
        "  aws configure\n\n"
        "Or set environment variables:\n"
        "  export AWS_ACCESS_KEY_ID=...\n"
        "  export AWS_SECRET_ACCESS_KEY=..."
    )
