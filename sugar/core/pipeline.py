"""Ordered resolution pipeline from a filter to a running ssh client.

Each stage takes the previous stage's output as its only input:
inventory fetch, matching, selection, identity resolution, plan assembly,
trust reconciliation and finally the ssh launch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sugar.core.connection import ConnectionAssembler, host_aliases
from sugar.core.disambiguator import Disambiguator
from sugar.core.identity import IdentityResolver
from sugar.core.interfaces import InventoryProvider
from sugar.core.matcher import match
from sugar.core.models import (
    ConnectionOverrides,
    ConnectionPlan,
    HostIdentity,
    Instance,
    MatchFilter,
    SelectionResult,
    TrustResult,
)
from sugar.core.trust import TrustStore
from sugar.services.ssh import SSHLauncher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedConnection:
    """Output of the planning stages, before anything touches the host."""

    selection: SelectionResult
    identity: HostIdentity
    plan: ConnectionPlan

    @property
    def instance(self) -> Instance:
        return self.selection.instance


class ConnectPipeline:
    """Run the resolution stages in order.

    Parameters
    ----------
    inventory : InventoryProvider
        Source of the instance snapshot
    disambiguator : Disambiguator
        Selection policy
    identity_resolver : IdentityResolver
        Host identity lookup and discovery
    assembler : ConnectionAssembler
        Connection plan builder
    trust_store : TrustStore
        known_hosts reconciler
    launcher : SSHLauncher
        ssh client launcher
    """

    def __init__(
        self,
        inventory: InventoryProvider,
        disambiguator: Disambiguator,
        identity_resolver: IdentityResolver,
        assembler: ConnectionAssembler,
        trust_store: TrustStore,
        launcher: SSHLauncher,
    ) -> None:
        self.inventory = inventory
        self.disambiguator = disambiguator
        self.identity_resolver = identity_resolver
        self.assembler = assembler
        self.trust_store = trust_store
        self.launcher = launcher

    def select(self, match_filter: MatchFilter, interactive: bool = False) -> SelectionResult:
        """Fetch the inventory, match the filter and choose one instance.

        Raises
        ------
        InventoryFetchError
            If the inventory cannot be fetched
        NoMatchError
            If nothing matches
        NamingConflictError
            If a naming conflict is refused
        """
        snapshot = self.inventory.list_running_instances()
        candidates = match(match_filter.query, snapshot)
        return self.disambiguator.select(
            candidates, interactive=interactive, query=match_filter.query
        )

    def prepare(
        self, match_filter: MatchFilter, overrides: ConnectionOverrides
    ) -> PreparedConnection:
        """Select an instance, resolve its identity and build the plan.

        Raises
        ------
        KeyNotFoundError
            If no private key file can be located
        """
        selection = self.select(match_filter, interactive=overrides.interactive)
        identity = self.identity_resolver.resolve(selection.instance)
        plan = self.assembler.build_plan(selection.instance, identity, overrides)
        return PreparedConnection(selection=selection, identity=identity, plan=plan)

    def establish_trust(self, prepared: PreparedConnection) -> TrustResult:
        """Record the host's keys when they can be verified.

        Hosts without known fingerprints are left to ssh's own prompt.
        """
        if not prepared.identity.is_verifiable:
            logger.debug("No fingerprints known for %s", prepared.instance.instance_id)
            return TrustResult()

        hosts = host_aliases(prepared.instance, prepared.plan.host)
        return self.trust_store.verify_host_key(hosts, prepared.identity.fingerprints)

    def connect(self, prepared: PreparedConnection, query: str) -> int:
        """Reconcile trust and hand over to ssh.

        Returns
        -------
        int
            ssh exit status

        Raises
        ------
        HostKeyMismatchError
            If a changed host key is refused by policy
        """
        self.establish_trust(prepared)

        logger.info(
            "Connecting to %s %s",
            prepared.instance.instance_id,
            prepared.selection.describe(query),
        )
        return self.launcher.launch(prepared.plan)
