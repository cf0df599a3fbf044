"""Fuzzy and exact matching of a filter against an inventory snapshot."""

from __future__ import annotations

from collections.abc import Iterable

from sugar.core.models import Instance


def is_match(query: str, instance: Instance) -> bool:
    """Check whether an instance satisfies the filter.

    Partial, case-insensitive matching applies to the display name only.
    Identifiers and addresses must be equal to the query.

    Parameters
    ----------
    query : str
        Lowercased filter text
    instance : Instance
        Candidate instance

    Returns
    -------
    bool
        True if any of the name, identifier or address clauses holds
    """
    if instance.name is not None and query in instance.name.lower():
        return True

    if query in (instance.instance_id, instance.image_id):
        return True

    return query in (
        instance.public_hostname,
        instance.public_address,
        instance.private_hostname,
        instance.private_address,
    )


def match(query: str, inventory: Iterable[Instance]) -> tuple[Instance, ...]:
    """Return the instances matching ``query``, in inventory order.

    An empty result is a valid outcome; callers decide how to react.
    """
    return tuple(instance for instance in inventory if is_match(query, instance))
