"""Capabilities the pipeline stages depend on.

Each stage receives its collaborators through these protocols so tests can
substitute in-memory fakes for EC2, the terminal and the network.
"""

from __future__ import annotations

from typing import Protocol

from sugar.core.models import HostIdentity, Instance, ScannedKey


class InventoryProvider(Protocol):
    """Protocol for the cloud inventory backing the pipeline."""

    def list_running_instances(self) -> tuple[Instance, ...]:
        """Fetch the running instances.

        Raises
        ------
        InventoryFetchError
            If the provider call fails
        """
        ...

    def get_console_output(self, instance_id: str) -> str:
        """Fetch the boot console log of an instance.

        Raises
        ------
        ProviderError
            If the provider call fails
        """
        ...

    def tag_instance(self, instance_id: str, tags: dict[str, str]) -> None:
        """Attach or overwrite tags on an instance.

        Raises
        ------
        ProviderError
            If the provider call fails
        """
        ...


class IdentityCache(Protocol):
    """Protocol for the host identity cache."""

    def get(self, instance_id: str) -> HostIdentity | None:
        """Return the cached identity, or None on a miss."""
        ...

    def put(self, instance_id: str, identity: HostIdentity) -> None:
        """Persist an identity.

        Raises
        ------
        CacheWriteError
            If the value cannot be stored
        """
        ...


class IntegerPrompt(Protocol):
    """Protocol for the blocking numeric selection prompt."""

    def prompt_integer(self, prompt: str, valid: range) -> int:
        """Ask until an integer within ``valid`` is supplied."""
        ...


class KeyProbe(Protocol):
    """Protocol for collecting the public host keys a server offers."""

    def scan(
        self, host: str, key_types: tuple[str, ...], timeout: float
    ) -> list[ScannedKey]:
        """Collect offered keys, one handshake per key type.

        Raises
        ------
        ProbeError
            If the host cannot be reached at all
        """
        ...
