import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import InterpolationResolutionError

from sugar.constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_KEY_NAME,
    DEFAULT_KNOWN_HOSTS,
    DEFAULT_PROBE_KEY_TYPES,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_REGION,
    DEFAULT_SSH_DIR,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_USERNAME,
    ENV_CONFIG,
    IDENTITY_TAG,
    MAX_VALID_PORT,
    MIN_VALID_PORT,
    NAME_TAG,
    ConflictPolicy,
    MismatchPolicy,
)

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load and merge YAML configuration with defaults."""

    def __init__(self) -> None:
        """Initialize ConfigLoader with built-in defaults."""
        self.BUILT_IN_DEFAULTS = {
            "region": None,
            "default_region": DEFAULT_REGION,
            "ssh_user": DEFAULT_SSH_USERNAME,
            "key_name": DEFAULT_KEY_NAME,
            "ssh_dir": DEFAULT_SSH_DIR,
            "known_hosts": DEFAULT_KNOWN_HOSTS,
            "probe_timeout": DEFAULT_PROBE_TIMEOUT_SECONDS,
            "probe_port": DEFAULT_SSH_PORT,
            "probe_key_types": list(DEFAULT_PROBE_KEY_TYPES),
            "ssh_binary": "ssh",
            "ssh_options": [],
            "name_tag": NAME_TAG,
            "identity_tag": IDENTITY_TAG,
            "on_host_key_mismatch": MismatchPolicy.WARN.value,
            "on_naming_conflict": ConflictPolicy.WARN.value,
        }

    def load_config(self, config_path: str | None = None) -> dict[str, Any]:
        """Load configuration from YAML file.

        Parameters
        ----------
        config_path : str | None
            Path to YAML config file. If None, checks SUGAR_CONFIG env var,
            then falls back to ~/.sugar.yaml

        Returns
        -------
        dict[str, Any]
            Parsed configuration with defaults and profiles sections,
            with all variable interpolations resolved

        Raises
        ------
        ValueError
            If the file is not valid YAML or variables cannot be resolved
        omegaconf.errors.InterpolationResolutionError
            If undefined variables are referenced or circular references exist
        """
        if config_path is None:
            config_path = os.environ.get(ENV_CONFIG, DEFAULT_CONFIG_PATH)

        config_file = Path(config_path).expanduser()

        if not config_file.exists():
            logger.debug("No configuration file at %s", config_file)
            return {"defaults": {}}

        try:
            cfg = OmegaConf.load(config_file)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML config file %s: %s", config_file, e)
            raise ValueError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            logger.error("Failed to read config file %s: %s", config_file, e)
            raise RuntimeError(f"Failed to read config file {config_file}: {e}") from e

        if "vars" in cfg:
            vars_dict = OmegaConf.to_container(cfg.vars, resolve=False)
            for key, value in vars_dict.items():
                if key not in cfg:
                    cfg[key] = value

        try:
            config = OmegaConf.to_container(cfg, resolve=True, throw_on_missing=True)
        except InterpolationResolutionError as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise
        except (ValueError, KeyError, AttributeError) as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"Configuration in {config_file} must be a mapping")

        return config or {"defaults": {}}

    def get_profile_config(
        self, config: dict[str, Any], profile: str | None = None
    ) -> dict[str, Any]:
        """Get merged configuration for an AWS profile.

        Unlike YAML defaults, a profile section is optional: an AWS profile
        without a matching section simply gets the defaults.

        Parameters
        ----------
        config : dict[str, Any]
            Full configuration from YAML
        profile : str | None
            AWS profile selected with ``name@profile``, or None

        Returns
        -------
        dict[str, Any]
            Merged configuration (built-in defaults + YAML defaults + profile settings)
        """
        merged = copy.deepcopy(self.BUILT_IN_DEFAULTS)

        for key, value in (config.get("defaults") or {}).items():
            merged[key] = value

        if profile is not None:
            profiles = config.get("profiles") or {}
            for key, value in (profiles.get(profile) or {}).items():
                merged[key] = value

        return merged

    def validate_config(self, config: dict[str, Any]) -> None:
        """Validate configuration types and allowed values.

        Parameters
        ----------
        config : dict[str, Any]
            Merged configuration to validate

        Raises
        ------
        ValueError
            If configuration is invalid
        """
        string_fields = (
            "default_region",
            "ssh_user",
            "key_name",
            "ssh_dir",
            "known_hosts",
            "ssh_binary",
            "name_tag",
            "identity_tag",
        )

        for field in string_fields:
            value = config.get(field)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{field} must be a non-empty string")

        region = config.get("region")
        if region is not None and not isinstance(region, str):
            raise ValueError("region must be a string")

        self._validate_probe(config)
        self._validate_list("ssh_options", config)
        self._validate_policy("on_host_key_mismatch", MismatchPolicy, config)
        self._validate_policy("on_naming_conflict", ConflictPolicy, config)

    def _validate_probe(self, config: dict[str, Any]) -> None:
        timeout = config.get("probe_timeout")
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("probe_timeout must be a positive number")

        port = config.get("probe_port")
        if isinstance(port, bool) or not isinstance(port, int):
            raise ValueError("probe_port must be an integer")
        if port < MIN_VALID_PORT or port > MAX_VALID_PORT:
            raise ValueError(
                f"probe_port must be between {MIN_VALID_PORT} and {MAX_VALID_PORT}"
            )

        self._validate_list("probe_key_types", config)
        if not config["probe_key_types"]:
            raise ValueError("probe_key_types must not be empty")

    def _validate_list(self, field: str, config: dict[str, Any]) -> None:
        value = config.get(field)
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{field} must be a list of strings")

    def _validate_policy(self, field: str, policy: type, config: dict[str, Any]) -> None:
        allowed = [p.value for p in policy]
        if config.get(field) not in allowed:
            raise ValueError(f"{field} must be one of {allowed}, got: {config.get(field)}")
