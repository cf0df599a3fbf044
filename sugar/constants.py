"""Global constants for sugar.

Values shared across the pipeline stages: defaults used when neither the
command line, the environment nor the configuration file provide a value,
the inventory tag names and the process exit codes.
"""

from enum import Enum

DEFAULT_REGION = "us-east-1"
"""Region used when no region is configured anywhere.

Matches the AWS CLI default. A warning is logged whenever it is assumed.
"""

DEFAULT_SSH_USERNAME = "ubuntu"
"""Login name used when no override or discovered username is available."""

DEFAULT_KEY_NAME = "aws"
"""Private key name looked up under the SSH directory as a last resort."""

DEFAULT_SSH_DIR = "~/.ssh"
"""Directory holding private keys referenced by name."""

DEFAULT_KNOWN_HOSTS = "~/.ssh/known_hosts"
"""Trusted-hosts file reconciled before connecting."""

DEFAULT_CONFIG_PATH = "~/.sugar.yaml"
"""Configuration file read when SUGAR_CONFIG is not set."""

DEFAULT_SSH_PORT = 22

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0
"""Timeout in seconds for each host key probe handshake.

The probe opens one SSH handshake per key type; a stalled host should not
hold the operator for longer than a few seconds per attempt.
"""

DEFAULT_PROBE_KEY_TYPES = ("ecdsa-sha2-nistp256", "rsa-sha2-512", "ssh-ed25519")
"""Host key algorithms requested from the remote host, one handshake each.

RSA is requested through ``rsa-sha2-512`` because current OpenSSH servers no
longer sign with ``ssh-rsa``; the key still reports itself as ``ssh-rsa``.
"""

NAME_TAG = "Name"
"""Instance tag holding the human-assigned display name."""

IDENTITY_TAG = "SshInfo"
"""Instance tag caching discovered host key fingerprints and login name."""

RUNNING_STATE = "running"

MIN_VALID_PORT = 1
MAX_VALID_PORT = 65535

DEFAULT_NAME_COLUMN_WIDTH = 24
"""Width in characters of the name column in instance listings."""

ENV_CONFIG = "SUGAR_CONFIG"
ENV_DEBUG = "SUGAR_DEBUG"
ENV_SSH_USER = "SSH_USER"
ENV_SSH_KEY = "SSH_KEY"

EXIT_NO_FILTER = 1
"""Exit code when no instance filter was given."""

EXIT_NAMING_CONFLICT = 2
"""Exit code when a naming conflict is refused by configuration."""

EXIT_NO_MATCH = 3
"""Exit code when no running instance matches the filter."""

EXIT_CONFIG_ERROR = 4
"""Exit code for profile, credential or configuration file problems."""

EXIT_KEY_NOT_FOUND = 5
"""Exit code when no usable private key file can be located."""

EXIT_HOST_KEY_MISMATCH = 6
"""Exit code when a changed host key is refused by configuration."""

EXIT_NO_ADDRESS = 7
"""Exit code when the chosen instance has no reachable address."""

EXIT_INVENTORY_ERROR = 10
"""Exit code when the running instance list cannot be fetched."""


class ConflictPolicy(str, Enum):
    """What to do when the matched instances carry different names."""

    WARN = "warn"
    REFUSE = "refuse"


class MismatchPolicy(str, Enum):
    """What to do when a probed host key differs from the recorded fingerprint."""

    WARN = "warn"
    REFUSE = "refuse"
