"""Host identity discovery from boot console logs.

A freshly booted instance prints the fingerprints of the host keys it
generates to its console. Reading them back gives an out-of-band reference
for the keys the host later offers over the network, which is what makes
the first connection verifiable. The discovered identity is cached on the
instance itself so the console log only has to be read once.
"""

from __future__ import annotations

import logging
import re
import warnings
from collections.abc import Iterator

from sugar.core.errors import CacheWriteError, CacheWriteFailure, IdentityDiscoveryDegraded
from sugar.core.interfaces import IdentityCache, InventoryProvider
from sugar.core.models import HostIdentity, Instance
from sugar.providers.exceptions import ProviderError

logger = logging.getLogger(__name__)

HOST_KEY_FINGERPRINT_RE = re.compile(
    r"Your public key has been saved in /etc/ssh/ssh_host_([^_]+)_key\.pub\.[\r\n]+"
    r"The key fingerprint is:[\r\n]+"
    r"((?:[0-9a-f]{2}:)+[0-9a-f]{2}|SHA256:[A-Za-z0-9+/]+=*) "
)

OS_USERNAMES = (
    ("Amazon", "ec2-user"),
    ("Ubuntu", "ubuntu"),
    ("Microsoft Windows", "Administrator"),
)
"""Console log markers and the default login name of that OS family, by priority."""


def iter_host_key_fingerprints(console_output: str) -> Iterator[tuple[str, str]]:
    """Yield ``(key_type, fingerprint)`` pairs announced in a console log.

    Parameters
    ----------
    console_output : str
        Decoded console log text

    Yields
    ------
    tuple[str, str]
        Short key type (``rsa``, ``ecdsa``...) and its fingerprint, in log order
    """
    for found in HOST_KEY_FINGERPRINT_RE.finditer(console_output):
        yield found.group(1), found.group(2)


def detect_username(console_output: str) -> str | None:
    """Guess the default login name from OS markers in a console log."""
    for marker, username in OS_USERNAMES:
        if marker in console_output:
            return username
    return None


def discover_identity(console_output: str) -> HostIdentity:
    """Build a host identity from a console log.

    Later fingerprints for the same key type replace earlier ones, the log
    being chronological. No fingerprint at all yields ``fingerprints=None``.
    """
    fingerprints = dict(iter_host_key_fingerprints(console_output))
    username = detect_username(console_output)

    if username is None:
        logger.warning("Unable to fingerprint instance type/username")

    if not fingerprints:
        logger.warning("No SSH host keys found in instance log.")

    return HostIdentity(fingerprints=fingerprints or None, username=username)


class IdentityResolver:
    """Resolve the host identity of an instance, cache first.

    The identity tag parsed into the snapshot is checked before the injected
    cache; both are hits without any I/O.

    Parameters
    ----------
    provider : InventoryProvider
        Source of console logs
    cache : IdentityCache
        Cache consulted before and updated after discovery
    """

    def __init__(self, provider: InventoryProvider, cache: IdentityCache) -> None:
        self.provider = provider
        self.cache = cache

    def resolve(self, instance: Instance) -> HostIdentity:
        """Return the host identity of ``instance``.

        Console log problems degrade to an empty identity and cache write
        problems are reported; neither stops the connection.

        Parameters
        ----------
        instance : Instance
            Chosen instance

        Returns
        -------
        HostIdentity
            Cached or freshly discovered identity
        """
        cached = instance.cached_identity or self.cache.get(instance.instance_id)
        if cached is not None:
            logger.debug("Using cached SSH info for %s: %s", instance.instance_id, cached)
            return cached

        logger.debug("Finding instance SSH info...")

        try:
            console_output = self.provider.get_console_output(instance.instance_id)
        except ProviderError as e:
            warnings.warn(
                IdentityDiscoveryDegraded(
                    f"Error fetching console output for {instance.instance_id}: {e}"
                ),
                stacklevel=2,
            )
            return HostIdentity()

        identity = discover_identity(console_output)

        logger.debug("Storing SSH info %s", identity)
        try:
            self.cache.put(instance.instance_id, identity)
        except CacheWriteError as e:
            warnings.warn(
                CacheWriteFailure(f"Could not cache SSH info on {instance.instance_id}: {e}"),
                stacklevel=2,
            )

        return identity
