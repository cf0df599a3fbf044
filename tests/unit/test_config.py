from pathlib import Path

import pytest
import yaml
from omegaconf.errors import InterpolationResolutionError

from sugar.core.config import ConfigLoader


class TestConfigLoader:
    def test_load_config_with_defaults_only(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sugar.yaml"
        config_data = {"defaults": {"region": "eu-west-1", "ssh_user": "admin"}}
        config_file.write_text(yaml.dump(config_data))

        config = ConfigLoader().load_config(str(config_file))

        assert config["defaults"]["region"] == "eu-west-1"
        assert config["defaults"]["ssh_user"] == "admin"

    def test_load_config_missing_file_uses_built_in_defaults(self) -> None:
        config = ConfigLoader().load_config("/nonexistent/path/sugar.yaml")

        assert config == {"defaults": {}}

    def test_load_config_reads_env_path(self, write_config) -> None:
        write_config({"defaults": {"key_name": "ops"}})

        config = ConfigLoader().load_config()

        assert config["defaults"]["key_name"] == "ops"

    def test_load_config_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sugar.yaml"
        config_file.write_text("")

        assert ConfigLoader().load_config(str(config_file)) == {"defaults": {}}

    def test_load_config_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sugar.yaml"
        config_file.write_text("defaults: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            ConfigLoader().load_config(str(config_file))

    def test_vars_are_interpolated(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sugar.yaml"
        config_file.write_text(
            "vars:\n"
            "  keys: /opt/keys\n"
            "defaults:\n"
            "  ssh_dir: ${keys}/ssh\n"
        )

        config = ConfigLoader().load_config(str(config_file))

        assert config["defaults"]["ssh_dir"] == "/opt/keys/ssh"

    def test_undefined_variable_fails(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sugar.yaml"
        config_file.write_text("defaults:\n  ssh_dir: ${missing}/ssh\n")

        with pytest.raises((InterpolationResolutionError, ValueError)):
            ConfigLoader().load_config(str(config_file))


class TestProfileConfig:
    def test_built_in_defaults(self) -> None:
        loader = ConfigLoader()

        merged = loader.get_profile_config({"defaults": {}})

        assert merged["default_region"] == "us-east-1"
        assert merged["ssh_user"] == "ubuntu"
        assert merged["key_name"] == "aws"
        assert merged["identity_tag"] == "SshInfo"
        assert merged["on_host_key_mismatch"] == "warn"
        assert merged["on_naming_conflict"] == "warn"
        loader.validate_config(merged)

    def test_profile_overrides_defaults(self) -> None:
        config = {
            "defaults": {"ssh_user": "admin", "key_name": "shared"},
            "profiles": {"staging": {"key_name": "staging-key", "region": "us-west-2"}},
        }

        merged = ConfigLoader().get_profile_config(config, "staging")

        assert merged["ssh_user"] == "admin"
        assert merged["key_name"] == "staging-key"
        assert merged["region"] == "us-west-2"

    def test_unknown_profile_gets_defaults(self) -> None:
        config = {"defaults": {"key_name": "shared"}, "profiles": {"staging": {}}}

        merged = ConfigLoader().get_profile_config(config, "production")

        assert merged["key_name"] == "shared"

    def test_merging_does_not_mutate_built_in_defaults(self) -> None:
        loader = ConfigLoader()

        merged = loader.get_profile_config({"defaults": {}})
        merged["probe_key_types"].append("ssh-dss")

        assert "ssh-dss" not in loader.BUILT_IN_DEFAULTS["probe_key_types"]


class TestValidateConfig:
    @pytest.fixture
    def valid(self) -> dict:
        loader = ConfigLoader()
        return loader.get_profile_config({"defaults": {}})

    @pytest.mark.parametrize(
        ("field", "value", "message"),
        [
            ("ssh_user", "", "ssh_user must be a non-empty string"),
            ("key_name", 42, "key_name must be a non-empty string"),
            ("region", ["us-east-1"], "region must be a string"),
            ("probe_timeout", 0, "probe_timeout must be a positive number"),
            ("probe_timeout", True, "probe_timeout must be a positive number"),
            ("probe_port", 70000, "probe_port must be between"),
            ("probe_key_types", [], "probe_key_types must not be empty"),
            ("ssh_options", "-A", "ssh_options must be a list of strings"),
            ("on_host_key_mismatch", "ignore", "on_host_key_mismatch must be one of"),
            ("on_naming_conflict", "ask", "on_naming_conflict must be one of"),
        ],
    )
    def test_invalid_values(self, valid: dict, field: str, value, message: str) -> None:
        valid[field] = value

        with pytest.raises(ValueError, match=message):
            ConfigLoader().validate_config(valid)

    def test_refuse_policies_are_valid(self, valid: dict) -> None:
        valid["on_host_key_mismatch"] = "refuse"
        valid["on_naming_conflict"] = "refuse"

        ConfigLoader().validate_config(valid)
