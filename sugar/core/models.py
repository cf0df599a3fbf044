"""Value types flowing through the resolution pipeline."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostIdentity:
    """Host key fingerprints and likely login name of an instance.

    Attributes
    ----------
    fingerprints : dict[str, str] | None
        Mapping of short key type (``rsa``, ``ecdsa``...) to fingerprint.
        ``None`` means no fingerprint is known, which is different from a
        verified empty mapping.
    username : str | None
        Login name guessed from the operating system family
    """

    fingerprints: dict[str, str] | None = None
    username: str | None = None

    @property
    def is_verifiable(self) -> bool:
        """Whether there is at least one fingerprint to check host keys against."""
        return bool(self.fingerprints)

    def to_tag_value(self) -> str:
        """Serialize to the JSON document stored in the identity tag.

        Returns
        -------
        str
            Compact JSON with ``prints`` omitted when no fingerprint is known
        """
        payload: dict[str, Any] = {}
        if self.fingerprints:
            payload["prints"] = dict(sorted(self.fingerprints.items()))
        if self.username:
            payload["username"] = self.username
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    @classmethod
    def from_tag_value(cls, value: str) -> HostIdentity:
        """Parse the JSON document stored in the identity tag.

        Parameters
        ----------
        value : str
            Raw tag value

        Returns
        -------
        HostIdentity
            Parsed identity

        Raises
        ------
        ValueError
            If the value is not a JSON object of the expected shape
        """
        data = json.loads(value)
        if not isinstance(data, dict):
            raise ValueError("identity tag must hold a JSON object")

        prints = data.get("prints")
        if prints is not None and not isinstance(prints, dict):
            raise ValueError("identity tag 'prints' must be an object")

        username = data.get("username")
        if username is not None and not isinstance(username, str):
            raise ValueError("identity tag 'username' must be a string")

        return cls(
            fingerprints={str(k): str(v) for k, v in prints.items()} if prints else None,
            username=username or None,
        )


@dataclass(frozen=True)
class Instance:
    """A running compute instance as seen in one inventory snapshot."""

    instance_id: str
    image_id: str | None = None
    name: str | None = None
    public_address: str | None = None
    private_address: str | None = None
    public_hostname: str | None = None
    private_hostname: str | None = None
    key_name: str | None = None
    cached_identity: HostIdentity | None = None
    tags: dict[str, str] = field(default_factory=dict, compare=False, repr=False)

    @property
    def public_host(self) -> str | None:
        return self.public_hostname or self.public_address

    @property
    def private_host(self) -> str | None:
        return self.private_address or self.private_hostname

    @property
    def display_address(self) -> str:
        return self.public_host or self.private_host or "-"

    @classmethod
    def from_ec2(
        cls, data: dict[str, Any], name_tag: str = "Name", identity_tag: str = "SshInfo"
    ) -> Instance:
        """Build an instance from one ``describe_instances`` instance record.

        Parameters
        ----------
        data : dict[str, Any]
            Instance dictionary from the EC2 response
        name_tag : str
            Tag key holding the display name
        identity_tag : str
            Tag key holding the cached host identity

        Returns
        -------
        Instance
            Normalized instance; empty strings from the API become ``None``
        """
        tags = {tag["Key"]: tag.get("Value", "") for tag in data.get("Tags") or []}

        cached_identity = None
        raw_identity = tags.get(identity_tag)
        if raw_identity:
            try:
                cached_identity = HostIdentity.from_tag_value(raw_identity)
            except ValueError as e:
                logger.warning(
                    "Ignoring malformed %s tag on %s: %s",
                    identity_tag,
                    data.get("InstanceId"),
                    e,
                )

        return cls(
            instance_id=data["InstanceId"],
            image_id=data.get("ImageId") or None,
            name=tags.get(name_tag) or None,
            public_address=data.get("PublicIpAddress") or None,
            private_address=data.get("PrivateIpAddress") or None,
            public_hostname=data.get("PublicDnsName") or None,
            private_hostname=data.get("PrivateDnsName") or None,
            key_name=data.get("KeyName") or None,
            cached_identity=cached_identity,
            tags=tags,
        )


@dataclass(frozen=True)
class MatchFilter:
    """Instance filter typed by the operator, ``name[@profile]``."""

    raw_query: str
    query: str
    profile: str | None = None

    @classmethod
    def parse(cls, raw: str | None) -> MatchFilter:
        """Split ``raw`` on ``@`` into a lowercased query and an optional profile."""
        raw_query = "" if raw is None else str(raw)
        query, _, profile = raw_query.partition("@")
        return cls(raw_query=raw_query, query=query.lower(), profile=profile or None)


@dataclass(frozen=True)
class SelectionResult:
    """The chosen instance and how many candidates it was chosen from."""

    instance: Instance
    candidate_count: int
    naming_conflict: bool = False

    def describe(self, query: str) -> str:
        """Human-facing note on how the instance was picked."""
        if self.candidate_count > 1:
            return f'(one of {self.candidate_count} instances matching "{query}")'
        return f"(the only {self.instance.name or self.instance.instance_id} instance)"


@dataclass(frozen=True)
class ConnectionOverrides:
    """Connection options given on the command line."""

    identity: str | None = None
    key: str | None = None
    user: str | None = None
    port: int | None = None
    print_only: bool = False
    interactive: bool = False


@dataclass(frozen=True)
class ConnectionPlan:
    """Everything needed to start the ssh client, decided before it starts."""

    key_file: str
    user: str
    host: str
    forward_port: int | None = None
    extra_flags: tuple[str, ...] = ()

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}"

    def to_args(self) -> list[str]:
        """Render the ssh argument list, without the binary name."""
        args = ["-i", self.key_file]
        if self.forward_port is not None:
            args += ["-L", f"{self.forward_port}:localhost:{self.forward_port}"]
        args += list(self.extra_flags)
        args.append(self.destination)
        return args

    def render(self) -> str:
        return " ".join(self.to_args())


@dataclass(frozen=True)
class ScannedKey:
    """A public host key offered by a remote host."""

    key_type: str
    base64: str

    def to_known_hosts_line(self, hosts: list[str]) -> str:
        return f"{','.join(hosts)} {self.key_type} {self.base64}"


@dataclass
class TrustResult:
    """Outcome of reconciling one host against the trusted-hosts file."""

    already_trusted: bool = False
    probed: bool = False
    added: list[str] = field(default_factory=list)
    mismatched: list[str] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return self.already_trusted or bool(self.added)
