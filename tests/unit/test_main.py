import random
from pathlib import Path

import pytest

from sugar.__main__ import Sugar
from sugar.core.errors import (
    ConfigurationError,
    HostKeyMismatchError,
    KeyNotFoundError,
    MissingFilterError,
    NamingConflictError,
    NamingConflictWarning,
    NoMatchError,
    TrustMismatchWarning,
)
from sugar.core.models import HostIdentity, ScannedKey
from sugar.core.trust import fingerprint
from tests.unit.fakes import (
    FakeInventory,
    FakeKeyProbe,
    FakeLauncher,
    InMemoryIdentityCache,
    ScriptedPrompt,
)
from tests.unit.fakes.sample_data import UBUNTU_CONSOLE_LOG

RSA_KEY = ScannedKey("ssh-rsa", "AAAAB3NzaC1yc2EAAAADAQABAAABAQC7")


@pytest.fixture
def known_hosts(tmp_path: Path) -> Path:
    return tmp_path / "known_hosts"


@pytest.fixture
def settings_file(write_config, ssh_dir: Path, known_hosts: Path):
    def _write(**overrides) -> None:
        defaults = {"ssh_dir": str(ssh_dir), "known_hosts": str(known_hosts)}
        defaults.update(overrides)
        write_config({"defaults": defaults})

    _write()
    return _write


@pytest.fixture
def world(make_instance):
    """Inventory, cache, probe, launcher and prompt wired into one Sugar."""

    class World:
        def __init__(self) -> None:
            self.inventory = FakeInventory()
            self.cache = InMemoryIdentityCache()
            self.probe = FakeKeyProbe([RSA_KEY])
            self.launcher = FakeLauncher()
            self.prompt = ScriptedPrompt([])
            self.profiles: list[str | None] = []

        def sugar(self, environ: dict[str, str] | None = None) -> Sugar:
            def inventory_factory(profile, settings):
                self.profiles.append(profile)
                return self.inventory

            return Sugar(
                inventory_factory=inventory_factory,
                identity_cache_factory=lambda inventory: self.cache,
                key_probe_factory=lambda settings: self.probe,
                launcher_factory=lambda settings: self.launcher,
                prompt=self.prompt,
                rng=random.Random(42),
                environ=environ or {},
            )

    return World()


def test_ssh_single_match_connects(world, settings_file, ssh_dir, make_instance) -> None:
    db = make_instance("i-0000000000000001", name="db-prod-1", public_address="54.10.20.30")
    world.inventory.instances = [db, make_instance("i-0000000000000002", name="web")]

    status = world.sugar().ssh("db")

    assert status == 0
    plan = world.launcher.launched[0]
    assert plan.host == "54.10.20.30"
    assert plan.key_file == str(ssh_dir / "aws.pem")
    assert plan.user == "ubuntu"
    assert world.prompt.asked == 0


def test_ssh_returns_ssh_exit_status(world, settings_file, make_instance) -> None:
    world.inventory.instances = [make_instance(name="web")]
    world.launcher.returncode = 130

    assert world.sugar().ssh("web") == 130


def test_ssh_discovers_identity_and_trusts_host(
    world, settings_file, known_hosts, make_instance
) -> None:
    instance = make_instance("i-0000000000000001", name="web", public_address="54.0.0.1")
    console = UBUNTU_CONSOLE_LOG.replace(
        "d4:1d:8c:d9:8f:00:b2:04:e9:80:09:98:ec:f8:42:7e", fingerprint(RSA_KEY.base64)
    )
    world.inventory.instances = [instance]
    world.inventory.console_logs = {instance.instance_id: console}

    world.sugar().ssh("web")

    assert world.cache.puts[0][1].username == "ubuntu"
    assert known_hosts.read_text() == f"54.0.0.1 ssh-rsa {RSA_KEY.base64}\n"
    assert world.probe.scans[0][0] == "54.0.0.1"
    assert world.launcher.launched[0].user == "ubuntu"


def test_ssh_mismatch_warns_but_connects(world, settings_file, known_hosts, make_instance) -> None:
    identity = HostIdentity(fingerprints={"rsa": "00:11:22:33:44:55:66:77:88:99:aa:bb:cc:dd:ee:ff"})
    world.inventory.instances = [make_instance(name="web", cached_identity=identity)]

    with pytest.warns(TrustMismatchWarning):
        status = world.sugar().ssh("web")

    assert status == 0
    assert not known_hosts.exists()
    assert len(world.launcher.launched) == 1


def test_ssh_mismatch_refused_by_policy(world, settings_file, make_instance) -> None:
    settings_file(on_host_key_mismatch="refuse")
    identity = HostIdentity(fingerprints={"rsa": "00:11:22:33:44:55:66:77:88:99:aa:bb:cc:dd:ee:ff"})
    world.inventory.instances = [make_instance(name="web", cached_identity=identity)]

    with pytest.warns(TrustMismatchWarning):
        with pytest.raises(HostKeyMismatchError):
            world.sugar().ssh("web")

    assert world.launcher.launched == []


def test_ssh_without_fingerprints_skips_probe(world, settings_file, make_instance) -> None:
    world.inventory.instances = [make_instance(name="web", cached_identity=HostIdentity(username="ec2-user"))]

    world.sugar().ssh("web")

    assert world.probe.scans == []
    assert world.launcher.launched[0].user == "ec2-user"


def test_ssh_interactive_selection(world, settings_file, make_instance) -> None:
    first = make_instance("i-0000000000000001", name="web")
    second = make_instance("i-0000000000000002", name="web")
    world.inventory.instances = [first, second]
    world.prompt.answers = ["9", "1"]

    world.sugar().ssh("web", interactive=True)

    assert world.launcher.launched[0].host == second.public_address
    assert world.prompt.asked == 2


def test_ssh_naming_conflict_refused_by_policy(world, settings_file, make_instance) -> None:
    settings_file(on_naming_conflict="refuse")
    world.inventory.instances = [
        make_instance("i-0000000000000001", name="web-blue"),
        make_instance("i-0000000000000002", name="web-green"),
    ]

    with pytest.warns(NamingConflictWarning):
        with pytest.raises(NamingConflictError):
            world.sugar().ssh("web")


def test_ssh_profile_is_passed_to_inventory(world, settings_file, make_instance) -> None:
    world.inventory.instances = [make_instance(name="web")]

    world.sugar().ssh("web@staging")

    assert world.profiles == ["staging"]


def test_ssh_options_only(world, settings_file, ssh_dir, make_instance, capsys) -> None:
    world.inventory.instances = [make_instance(name="web", public_address="54.0.0.1")]

    status = world.sugar().ssh("web", user="root", opts=True)

    assert status == 0
    assert world.launcher.launched == []
    assert capsys.readouterr().out == f"-i {ssh_dir / 'aws.pem'} root@54.0.0.1\n"


def test_ssh_environment_overrides(world, settings_file, ssh_dir, make_instance) -> None:
    world.inventory.instances = [make_instance(name="web")]

    world.sugar(environ={"SSH_USER": "ops", "SSH_KEY": "deploy"}).ssh("web")

    plan = world.launcher.launched[0]
    assert plan.user == "ops"
    assert plan.key_file == str(ssh_dir / "deploy")


def test_ssh_extra_options_from_config(world, settings_file, make_instance) -> None:
    settings_file(ssh_options=["-o", "ServerAliveInterval=30"])
    world.inventory.instances = [make_instance(name="web")]

    world.sugar().ssh("web")

    assert world.launcher.launched[0].extra_flags == ("-o", "ServerAliveInterval=30")


def test_ssh_without_filter(world, settings_file) -> None:
    with pytest.raises(MissingFilterError) as exc_info:
        world.sugar().ssh()

    assert exc_info.value.exit_code == 1


def test_ssh_no_match(world, settings_file, make_instance) -> None:
    world.inventory.instances = [make_instance(name="web")]

    with pytest.raises(NoMatchError):
        world.sugar().ssh("db")


def test_ssh_missing_key(world, settings_file, make_instance) -> None:
    world.inventory.instances = [make_instance(name="web", key_name="legacy")]

    with pytest.raises(KeyNotFoundError):
        world.sugar().ssh("web", key="legacy")


def test_invalid_config_is_a_configuration_error(world, settings_file, make_instance) -> None:
    settings_file(probe_timeout=-1)
    world.inventory.instances = [make_instance(name="web")]

    with pytest.raises(ConfigurationError, match="probe_timeout"):
        world.sugar().ssh("web")


def test_forward(world, settings_file, make_instance) -> None:
    world.inventory.instances = [make_instance(name="jupyter", public_address="54.0.0.8")]

    world.sugar().forward("jupyter", 8888)

    plan = world.launcher.launched[0]
    assert plan.forward_port == 8888
    assert "-L" in plan.to_args()


@pytest.mark.parametrize("port", [None, "abc", 0, 70000])
def test_forward_rejects_bad_ports(world, settings_file, make_instance, port) -> None:
    world.inventory.instances = [make_instance(name="jupyter")]

    with pytest.raises(ValueError):
        world.sugar().forward("jupyter", port)

    assert world.launcher.launched == []


def test_dns_prints_address(world, settings_file, make_instance, capsys) -> None:
    world.inventory.instances = [
        make_instance(
            name="db",
            public_address="54.0.0.9",
            public_hostname="ec2-54-0-0-9.compute-1.amazonaws.com",
        )
    ]

    world.sugar().dns("db")

    assert capsys.readouterr().out == "ec2-54-0-0-9.compute-1.amazonaws.com\n"
    assert world.inventory.console_calls == []


def test_list_all_instances(world, settings_file, make_instance, capsys) -> None:
    world.inventory.instances = [
        make_instance("i-0000000000000001", name="web"),
        make_instance("i-0000000000000002", name="db"),
    ]

    world.sugar().list()

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("INSTANCE-ID")
    assert len(lines) == 4
    assert "i-0000000000000001" in lines[2]
    assert "db" in lines[3]


def test_list_filtered(world, settings_file, make_instance, capsys) -> None:
    world.inventory.instances = [
        make_instance("i-0000000000000001", name="web"),
        make_instance("i-0000000000000002", name="db"),
    ]

    world.sugar().list("db")

    out = capsys.readouterr().out
    assert "i-0000000000000002" in out
    assert "i-0000000000000001" not in out


def test_list_nothing_running(world, settings_file, capsys) -> None:
    world.sugar().list()

    assert capsys.readouterr().out == "No running instances found\n"
