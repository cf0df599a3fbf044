"""Assembly of the ssh connection plan."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sugar.constants import (
    DEFAULT_KEY_NAME,
    DEFAULT_SSH_DIR,
    DEFAULT_SSH_USERNAME,
    ENV_SSH_KEY,
    ENV_SSH_USER,
)
from sugar.core.errors import KeyNotFoundError, NoAddressError
from sugar.core.models import ConnectionOverrides, ConnectionPlan, HostIdentity, Instance

logger = logging.getLogger(__name__)


class ConnectionAssembler:
    """Build the final ssh connection parameters for a chosen instance.

    Parameters
    ----------
    settings : dict[str, Any]
        Merged configuration (``ssh_dir``, ``key_name``, ``ssh_user``,
        ``ssh_options``)
    environ : Mapping[str, str] | None
        Environment to read ``SSH_KEY`` and ``SSH_USER`` from (default: os.environ)
    """

    def __init__(
        self, settings: dict[str, Any], environ: Mapping[str, str] | None = None
    ) -> None:
        self.ssh_dir = Path(settings.get("ssh_dir") or DEFAULT_SSH_DIR).expanduser()
        self.default_key_name = settings.get("key_name") or DEFAULT_KEY_NAME
        self.default_user = settings.get("ssh_user") or DEFAULT_SSH_USERNAME
        self.ssh_options = tuple(str(opt) for opt in settings.get("ssh_options") or ())
        self.environ = os.environ if environ is None else environ

    def resolve_key_file(self, instance: Instance, overrides: ConnectionOverrides) -> str:
        """Locate the private key file.

        Precedence: explicit identity file, explicit key name, ``$SSH_KEY``,
        the instance's key pair name, the configured default name. Names are
        looked up in the SSH directory; each candidate path is tried as is and
        with a ``.pem`` suffix.

        Raises
        ------
        KeyNotFoundError
            If neither the path nor its ``.pem`` variant exists
        """
        if overrides.identity:
            path = Path(overrides.identity).expanduser()
            key_name = None
        else:
            key_name = (
                overrides.key
                or self.environ.get(ENV_SSH_KEY)
                or instance.key_name
                or self.default_key_name
            )
            path = self.ssh_dir / key_name

        for candidate in (path, path.with_name(path.name + ".pem")):
            if candidate.is_file():
                logger.debug("Using private key %s", candidate)
                return str(candidate)

        if key_name is None:
            raise KeyNotFoundError(f"Cannot find key at {path}")
        raise KeyNotFoundError(f"Private key {key_name} isn't in {self.ssh_dir}/")

    def resolve_user(self, identity: HostIdentity, overrides: ConnectionOverrides) -> str:
        return (
            overrides.user
            or self.environ.get(ENV_SSH_USER)
            or identity.username
            or self.default_user
        )

    def resolve_host(self, instance: Instance) -> str:
        """Public address when there is one, private address otherwise.

        Raises
        ------
        NoAddressError
            If the instance has no address at all
        """
        host = instance.public_host or instance.private_host
        if not host:
            raise NoAddressError(f"Instance {instance.instance_id} has no address")
        return host

    def build_plan(
        self,
        instance: Instance,
        identity: HostIdentity,
        overrides: ConnectionOverrides,
    ) -> ConnectionPlan:
        """Build the connection plan.

        Parameters
        ----------
        instance : Instance
            Chosen instance
        identity : HostIdentity
            Resolved host identity, for the discovered login name
        overrides : ConnectionOverrides
            Command line options

        Returns
        -------
        ConnectionPlan
            Immutable plan ready to be rendered or launched

        Raises
        ------
        KeyNotFoundError
            If no private key file can be located
        NoAddressError
            If the instance has no address
        """
        return ConnectionPlan(
            key_file=self.resolve_key_file(instance, overrides),
            user=self.resolve_user(identity, overrides),
            host=self.resolve_host(instance),
            forward_port=overrides.port,
            extra_flags=self.ssh_options,
        )


def host_aliases(instance: Instance, host: str) -> list[str]:
    """Addresses recorded for a host in known_hosts, ``host`` first."""
    if instance.public_host:
        candidates = (instance.public_hostname, instance.public_address)
    else:
        candidates = (instance.private_address, instance.private_hostname)

    aliases = [host]
    for alias in candidates:
        if alias and alias not in aliases:
            aliases.append(alias)
    return aliases
