#!/usr/bin/env python3
"""Sugar - connect to EC2 instances by name fragment."""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Callable, Mapping
from typing import Any

from sugar.cli.parsing import parse_port_parameter, parse_text_parameter
from sugar.constants import ConflictPolicy, MismatchPolicy
from sugar.core.config import ConfigLoader
from sugar.core.connection import ConnectionAssembler
from sugar.core.disambiguator import Disambiguator
from sugar.core.errors import ConfigurationError, MissingFilterError
from sugar.core.identity import IdentityResolver
from sugar.core.interfaces import IdentityCache, IntegerPrompt, InventoryProvider, KeyProbe
from sugar.core.matcher import match
from sugar.core.models import ConnectionOverrides, MatchFilter
from sugar.core.pipeline import ConnectPipeline
from sugar.core.trust import TrustStore
from sugar.providers.aws.compute import EC2Inventory, InstanceTagCache
from sugar.providers.aws.session import resolve_session
from sugar.services.prompt import ConsolePrompt
from sugar.services.ssh import ParamikoKeyProbe, SSHLauncher
from sugar.utils import format_instance_rows

logger = logging.getLogger("sugar")


class Sugar:
    """Main CLI interface for sugar.

    Every collaborator that reaches outside the process can be injected, so
    the commands run unchanged against fakes.

    Parameters
    ----------
    inventory_factory : Callable[[str | None, dict[str, Any]], InventoryProvider] | None
        Builds the inventory for a profile and merged settings
    identity_cache_factory : Callable[[InventoryProvider], IdentityCache] | None
        Builds the identity cache that writes through an inventory
    key_probe_factory : Callable[[dict[str, Any]], KeyProbe] | None
        Builds the host key probe from merged settings
    launcher_factory : Callable[[dict[str, Any]], SSHLauncher] | None
        Builds the ssh launcher from merged settings
    prompt : IntegerPrompt | None
        Interactive selection prompt (default: terminal prompt)
    rng : random.Random | None
        Random source for replica selection
    environ : Mapping[str, str] | None
        Environment (default: os.environ)
    config_loader : ConfigLoader | None
        Configuration loader
    """

    def __init__(
        self,
        inventory_factory: Callable[[str | None, dict[str, Any]], InventoryProvider] | None = None,
        identity_cache_factory: Callable[[Any], IdentityCache] | None = None,
        key_probe_factory: Callable[[dict[str, Any]], KeyProbe] | None = None,
        launcher_factory: Callable[[dict[str, Any]], SSHLauncher] | None = None,
        prompt: IntegerPrompt | None = None,
        rng: random.Random | None = None,
        environ: Mapping[str, str] | None = None,
        config_loader: ConfigLoader | None = None,
    ) -> None:
        """Initialize Sugar with optional dependency injection."""
        self._config_loader = config_loader or ConfigLoader()
        self._environ = os.environ if environ is None else environ
        self._inventory_factory = inventory_factory or self._create_inventory
        self._identity_cache_factory = identity_cache_factory or InstanceTagCache
        self._key_probe_factory = key_probe_factory or (
            lambda settings: ParamikoKeyProbe(port=settings["probe_port"])
        )
        self._launcher_factory = launcher_factory or (
            lambda settings: SSHLauncher(binary=settings["ssh_binary"])
        )
        self._prompt = prompt or ConsolePrompt()
        self._rng = rng

    def _create_inventory(self, profile: str | None, settings: dict[str, Any]) -> EC2Inventory:
        session, region = resolve_session(profile, settings, self._environ)
        return EC2Inventory(
            region=region,
            session=session,
            name_tag=settings["name_tag"],
            identity_tag=settings["identity_tag"],
        )

    def _load_settings(self, profile: str | None) -> dict[str, Any]:
        """Load, merge and validate configuration for a profile.

        Raises
        ------
        ConfigurationError
            If the configuration file is unreadable or invalid
        """
        try:
            config = self._config_loader.load_config()
            settings = self._config_loader.get_profile_config(
                config, profile or self._environ.get("AWS_PROFILE")
            )
            self._config_loader.validate_config(settings)
        except (ValueError, RuntimeError) as e:
            raise ConfigurationError(f"Configuration error: {e}") from e
        return settings

    def _parse_filter(self, filter: Any, verbose: bool) -> MatchFilter:
        if verbose:
            logger.setLevel(logging.DEBUG)

        match_filter = MatchFilter.parse(parse_text_parameter(filter))
        if not match_filter.query:
            raise MissingFilterError("No filter specified")
        return match_filter

    def _build_pipeline(
        self, match_filter: MatchFilter, settings: dict[str, Any]
    ) -> ConnectPipeline:
        inventory = self._inventory_factory(match_filter.profile, settings)

        return ConnectPipeline(
            inventory=inventory,
            disambiguator=Disambiguator(
                prompt=self._prompt,
                rng=self._rng,
                conflict_policy=ConflictPolicy(settings["on_naming_conflict"]),
            ),
            identity_resolver=IdentityResolver(
                inventory, self._identity_cache_factory(inventory)
            ),
            assembler=ConnectionAssembler(settings, self._environ),
            trust_store=TrustStore(
                path=settings["known_hosts"],
                probe=self._key_probe_factory(settings),
                timeout=float(settings["probe_timeout"]),
                key_types=tuple(settings["probe_key_types"]),
                on_mismatch=MismatchPolicy(settings["on_host_key_mismatch"]),
            ),
            launcher=self._launcher_factory(settings),
        )

    def _connect(self, filter: Any, overrides: ConnectionOverrides, verbose: bool) -> int:
        match_filter = self._parse_filter(filter, verbose)
        settings = self._load_settings(match_filter.profile)
        pipeline = self._build_pipeline(match_filter, settings)

        prepared = pipeline.prepare(match_filter, overrides)

        if overrides.print_only:
            print(prepared.plan.render())
            return 0

        return pipeline.connect(prepared, match_filter.query)

    def ssh(
        self,
        filter: str | None = None,
        key: str | None = None,
        identity: str | None = None,
        user: str | None = None,
        verbose: bool = False,
        opts: bool = False,
        interactive: bool = False,
    ) -> int:
        """Connect to a matching instance via ssh.

        Parameters
        ----------
        filter : str | None
            Instance filter, ``name[@profile]``
        key : str | None
            Key name for the instance
        identity : str | None
            Force path to key file
        user : str | None
            Log in as this user
        verbose : bool
            Display debug output
        opts : bool
            Just print the ssh options that would have been used
        interactive : bool
            Prompt to select a specific instance if more than one matches

        Returns
        -------
        int
            ssh exit status, or 0 when only printing options
        """
        overrides = ConnectionOverrides(
            identity=parse_text_parameter(identity),
            key=parse_text_parameter(key),
            user=parse_text_parameter(user),
            print_only=opts,
            interactive=interactive,
        )
        return self._connect(filter, overrides, verbose)

    def forward(
        self,
        filter: str | None = None,
        port: int | str | None = None,
        key: str | None = None,
        identity: str | None = None,
        user: str | None = None,
        verbose: bool = False,
        opts: bool = False,
        interactive: bool = False,
    ) -> int:
        """Forward a local port to the same port on a matching instance.

        Parameters
        ----------
        filter : str | None
            Instance filter, ``name[@profile]``
        port : int | str | None
            Port to forward

        Other parameters are the same as for :meth:`ssh`.

        Returns
        -------
        int
            ssh exit status, or 0 when only printing options
        """
        if port is None:
            raise ValueError("A port to forward is required")

        overrides = ConnectionOverrides(
            identity=parse_text_parameter(identity),
            key=parse_text_parameter(key),
            user=parse_text_parameter(user),
            port=parse_port_parameter(port),
            print_only=opts,
            interactive=interactive,
        )
        return self._connect(filter, overrides, verbose)

    def dns(self, filter: str | None = None, verbose: bool = False) -> None:
        """Print the address of a matching instance and bail."""
        match_filter = self._parse_filter(filter, verbose)
        settings = self._load_settings(match_filter.profile)
        pipeline = self._build_pipeline(match_filter, settings)

        selection = pipeline.select(match_filter)
        print(pipeline.assembler.resolve_host(selection.instance))

    def list(self, filter: str | None = None, verbose: bool = False) -> None:
        """List running instances, optionally narrowed by a filter."""
        if verbose:
            logger.setLevel(logging.DEBUG)

        match_filter = MatchFilter.parse(parse_text_parameter(filter))
        settings = self._load_settings(match_filter.profile)
        inventory = self._inventory_factory(match_filter.profile, settings)

        instances = inventory.list_running_instances()
        if match_filter.query:
            instances = match(match_filter.query, instances)

        if not instances:
            print("No running instances found")
            return

        print(f"{'INSTANCE-ID':<20} {'NAME':<24} ADDRESS")
        print("-" * 70)
        for row in format_instance_rows(instances):
            print(row)


if __name__ == "__main__":
    from sugar.cli.main import main

    main()
