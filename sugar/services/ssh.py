"""SSH host key probing and ssh client launch."""

from __future__ import annotations

import logging
import shlex
import socket
import subprocess

import paramiko

from sugar.constants import DEFAULT_SSH_PORT
from sugar.core.errors import ProbeError
from sugar.core.models import ConnectionPlan, ScannedKey

logger = logging.getLogger(__name__)


class ParamikoKeyProbe:
    """Collect the public host keys a server offers using paramiko.

    Each key type costs one TCP connection and one key exchange limited to
    that host key algorithm; no authentication is attempted.

    Parameters
    ----------
    port : int
        SSH port (default: 22)
    """

    def __init__(self, port: int = DEFAULT_SSH_PORT) -> None:
        self.port = port

    def fetch_key(self, host: str, key_type: str, timeout: float) -> paramiko.PKey:
        """Run one key exchange restricted to ``key_type``.

        Parameters
        ----------
        host : str
            Remote host
        key_type : str
            Host key algorithm to negotiate
        timeout : float
            Connect and handshake timeout in seconds

        Returns
        -------
        paramiko.PKey
            The server's host key for that algorithm

        Raises
        ------
        OSError
            If the host cannot be reached
        paramiko.SSHException
            If the server does not offer the algorithm
        """
        sock = socket.create_connection((host, self.port), timeout=timeout)
        try:
            transport = paramiko.Transport(sock)
        except Exception:
            sock.close()
            raise

        try:
            transport.get_security_options().key_types = (key_type,)
            transport.start_client(timeout=timeout)
            return transport.get_remote_server_key()
        finally:
            transport.close()

    def scan(
        self, host: str, key_types: tuple[str, ...], timeout: float
    ) -> list[ScannedKey]:
        """Collect offered keys, one handshake per key type.

        Key types the server does not support are skipped.

        Raises
        ------
        ProbeError
            If the host cannot be reached
        """
        keys: dict[str, ScannedKey] = {}

        for key_type in key_types:
            try:
                key = self.fetch_key(host, key_type, timeout)
            except (OSError, socket.timeout) as e:
                raise ProbeError(f"{host}:{self.port} unreachable: {e}") from e
            except ValueError as e:
                logger.debug("Unsupported host key algorithm %s: %s", key_type, e)
                continue
            except (paramiko.SSHException, EOFError) as e:
                logger.debug("%s did not offer a %s key: %s", host, key_type, e)
                continue

            scanned = ScannedKey(key_type=key.get_name(), base64=key.get_base64())
            keys.setdefault(scanned.key_type, scanned)

        return list(keys.values())


class SSHLauncher:
    """Hand the terminal over to the ssh client.

    Parameters
    ----------
    binary : str
        ssh client executable (default: ssh)
    """

    def __init__(self, binary: str = "ssh") -> None:
        self.binary = binary

    def command(self, plan: ConnectionPlan) -> list[str]:
        return [self.binary, *plan.to_args()]

    def launch(self, plan: ConnectionPlan) -> int:
        """Run ssh with inherited stdio and return its exit status.

        Raises
        ------
        RuntimeError
            If the ssh client cannot be started
        """
        command = self.command(plan)
        logger.debug("Running %s", shlex.join(command))

        try:
            completed = subprocess.run(command, check=False)
        except FileNotFoundError as e:
            raise RuntimeError(f"ssh client not found: {self.binary}") from e

        return completed.returncode
