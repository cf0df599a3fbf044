"""Reconciliation of the local known_hosts file with discovered fingerprints.

Trust is established once per host: when the host already appears in the
file it is left alone, otherwise its offered keys are probed and only those
matching the fingerprints read from the instance console are recorded.
Lines are only ever appended.
"""

from __future__ import annotations

import base64
import binascii
import fcntl
import hashlib
import logging
import warnings
from collections.abc import Mapping
from pathlib import Path

from paramiko.hostkeys import HostKeys

from sugar.constants import DEFAULT_PROBE_KEY_TYPES, DEFAULT_PROBE_TIMEOUT_SECONDS, MismatchPolicy
from sugar.core.errors import HostKeyMismatchError, ProbeError, TrustMismatchWarning
from sugar.core.interfaces import KeyProbe
from sugar.core.models import ScannedKey, TrustResult

logger = logging.getLogger(__name__)

KEY_TYPE_TAGS = {
    "ecdsa-sha2-nistp256": "ecdsa",
    "ssh-rsa": "rsa",
    "ssh-dsa": "dsa",
    "ssh-dss": "dsa",
    "ssh-ed25519": "ed25519",
}
"""Wire key type names mapped to the short names used in console logs."""


def fingerprint(key_base64: str, like: str | None = None) -> str:
    """Compute the fingerprint of a base64 encoded public key.

    Parameters
    ----------
    key_base64 : str
        Public key blob as found in known_hosts
    like : str | None
        A reference fingerprint; a ``SHA256:`` prefix selects the SHA256
        format, anything else the classic MD5 colon-hex format

    Returns
    -------
    str
        Fingerprint in the same format as ``like``
    """
    blob = base64.b64decode(key_base64)

    if like is not None and like.startswith("SHA256:"):
        digest = base64.b64encode(hashlib.sha256(blob).digest()).decode("ascii")
        return "SHA256:" + digest.rstrip("=")

    return ":".join(f"{b:02x}" for b in hashlib.md5(blob).digest())


def host_field_matches(host_field: str, host: str) -> bool:
    """Whether a known_hosts host field refers to ``host``.

    Plain fields match on substring. Hashed ``|1|salt|hash`` entries are
    compared by hashing ``host`` with the entry's salt. Hashed entries whose
    salt is not valid base64 are skipped.
    """
    for entry in host_field.split(","):
        if entry.startswith("|1|"):
            try:
                hashed = HostKeys.hash_host(host, entry)
            except binascii.Error:
                logger.debug("Skipping malformed hashed known_hosts entry %s", entry)
                continue
            if hashed == entry:
                return True
        elif host in entry:
            return True
    return False


class TrustStore:
    """Append-only view of a known_hosts file.

    Parameters
    ----------
    path : Path | str
        known_hosts file; created on first append if missing
    probe : KeyProbe
        Collector of the keys a host offers
    timeout : float
        Per-handshake probe timeout in seconds
    key_types : tuple[str, ...]
        Host key algorithms to probe, one handshake each
    on_mismatch : MismatchPolicy
        Whether a changed host key only warns or aborts the connection
    """

    def __init__(
        self,
        path: Path | str,
        probe: KeyProbe,
        timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        key_types: tuple[str, ...] = DEFAULT_PROBE_KEY_TYPES,
        on_mismatch: MismatchPolicy = MismatchPolicy.WARN,
    ) -> None:
        self.path = Path(path).expanduser()
        self.probe = probe
        self.timeout = timeout
        self.key_types = tuple(key_types)
        self.on_mismatch = MismatchPolicy(on_mismatch)

    def read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def is_known(self, host: str) -> bool:
        """Whether any line of the file already refers to ``host``."""
        for line in self.read().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            fields = line.split()
            if fields[0].startswith("@") and len(fields) > 1:
                fields = fields[1:]
            if host_field_matches(fields[0], host):
                return True
        return False

    def append(self, line: str) -> None:
        """Append one line, keeping existing content and newline discipline.

        Parameters
        ----------
        line : str
            known_hosts line without trailing newline
        """
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        with open(self.path, "a+", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.seek(0)
                existing = f.read()
                prefix = "\n" if existing and not existing.endswith("\n") else ""
                f.write(f"{prefix}{line}\n")
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def verify_host_key(
        self, hosts: list[str], fingerprints: Mapping[str, str] | None
    ) -> TrustResult:
        """Make sure the host's keys are recorded if they can be verified.

        Parameters
        ----------
        hosts : list[str]
            Host aliases; the first one is the address being connected to
        fingerprints : Mapping[str, str] | None
            Trusted fingerprints by short key type

        Returns
        -------
        TrustResult
            What was found, probed and appended

        Raises
        ------
        HostKeyMismatchError
            If a key changed and the mismatch policy refuses
        """
        result = TrustResult()

        if not fingerprints or not hosts:
            return result

        primary = hosts[0]

        logger.debug("Reading known_hosts file %s", self.path)
        if self.is_known(primary):
            logger.debug("Host key already added")
            result.already_trusted = True
            return result

        logger.info("Getting host key from %s", primary)
        try:
            offered = self.probe.scan(primary, self.key_types, self.timeout)
        except ProbeError as e:
            logger.warning("Error probing host keys of %s: %s", primary, e)
            return result

        result.probed = True

        for key in offered:
            self._reconcile(key, hosts, fingerprints, result)

        if result.mismatched and self.on_mismatch is MismatchPolicy.REFUSE:
            raise HostKeyMismatchError(primary, result.mismatched)

        return result

    def _reconcile(
        self,
        key: ScannedKey,
        hosts: list[str],
        fingerprints: Mapping[str, str],
        result: TrustResult,
    ) -> None:
        tag = KEY_TYPE_TAGS.get(key.key_type)
        expected = fingerprints.get(tag) if tag else None

        if expected is None:
            logger.debug("No recorded fingerprint for %s key, skipping", key.key_type)
            return

        if fingerprint(key.base64, like=expected) == expected:
            line = key.to_known_hosts_line(hosts)
            self.append(line)
            result.added.append(line)
            logger.debug("Trusted %s key for %s", key.key_type, ",".join(hosts))
        else:
            warnings.warn(TrustMismatchWarning(hosts[0], key.key_type), stacklevel=3)
            result.mismatched.append(key.key_type)
