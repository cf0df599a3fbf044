"""Error taxonomy for the resolution and trust pipeline.

Fatal conditions derive from :class:`SugarError` and carry the process exit
code the CLI terminates with. Non-fatal conditions derive from
:class:`SugarWarning` and are emitted with :func:`warnings.warn` so the
pipeline keeps going while the operator still sees them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sugar.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_HOST_KEY_MISMATCH,
    EXIT_INVENTORY_ERROR,
    EXIT_KEY_NOT_FOUND,
    EXIT_NAMING_CONFLICT,
    EXIT_NO_ADDRESS,
    EXIT_NO_FILTER,
    EXIT_NO_MATCH,
)

if TYPE_CHECKING:
    from sugar.core.models import Instance


class SugarError(Exception):
    """Base class for errors that end the current command."""

    exit_code = 1


class MissingFilterError(SugarError):
    """No instance filter was supplied."""

    exit_code = EXIT_NO_FILTER


class ConfigurationError(SugarError):
    """Profile, credentials or configuration file cannot be used."""

    exit_code = EXIT_CONFIG_ERROR


class InventoryFetchError(SugarError):
    """The running instance list could not be fetched."""

    exit_code = EXIT_INVENTORY_ERROR


class NoMatchError(SugarError):
    """No running instance satisfies the filter."""

    exit_code = EXIT_NO_MATCH

    def __init__(self, query: str) -> None:
        super().__init__(f"No instances match {query}")
        self.query = query


class NamingConflictError(SugarError):
    """Matched instances disagree on their name and the conflict is refused."""

    exit_code = EXIT_NAMING_CONFLICT

    def __init__(self, query: str, candidates: tuple[Instance, ...]) -> None:
        super().__init__(f"{query} matches multiple different instances.")
        self.query = query
        self.candidates = candidates


class KeyNotFoundError(SugarError):
    """No usable private key file exists for the connection."""

    exit_code = EXIT_KEY_NOT_FOUND


class NoAddressError(SugarError):
    """The chosen instance exposes neither a public nor a private address."""

    exit_code = EXIT_NO_ADDRESS


class HostKeyMismatchError(SugarError):
    """A probed host key differs from the recorded fingerprint and is refused."""

    exit_code = EXIT_HOST_KEY_MISMATCH

    def __init__(self, host: str, key_types: list[str]) -> None:
        super().__init__(
            f"Host key for {host} has changed ({', '.join(key_types)}); refusing to connect"
        )
        self.host = host
        self.key_types = key_types


class CacheWriteError(Exception):
    """The identity cache could not persist a value."""


class ProbeError(Exception):
    """The remote host's public keys could not be collected."""


class SugarWarning(UserWarning):
    """Base class for non-fatal conditions reported to the operator."""


class NamingConflictWarning(SugarWarning):
    """Several matched instances carry different names."""

    def __init__(self, query: str, candidates: tuple[Instance, ...]) -> None:
        names = sorted({c.name or "<unnamed>" for c in candidates})
        super().__init__(
            f"{query} matches multiple different instances: {', '.join(names)}"
        )
        self.query = query
        self.candidates = candidates


class IdentityDiscoveryDegraded(SugarWarning):
    """Host identity could not be discovered from the console log."""


class CacheWriteFailure(SugarWarning):
    """A discovered host identity could not be written back to the cache."""


class TrustMismatchWarning(SugarWarning):
    """An offered host key does not match the recorded fingerprint."""

    def __init__(self, host: str, key_type: str) -> None:
        super().__init__(f"Host {host} {key_type} key has changed")
        self.host = host
        self.key_type = key_type
