from ipaddress import IPv4Address
from pathlib import Path

import pytest

from rik.riklet_cli import FnConfiguration, parse_cli_args

ENV_VARS = ("FIRECRACKER_LOCATION", "KERNEL_LOCATION", "IFNET", "IFNET_IP")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    opts = parse_cli_args(["--ifnet-ip", "10.0.0.1"])
    assert opts.config_file == "/etc/riklet/configuration.toml"
    assert opts.master_ip is None
    assert opts.verbose == 0
    assert opts.override_config is False
    assert opts.firecracker_path == Path("firecracker")
    assert opts.kernel_path == Path("vmlinux.bin")
    assert opts.ifnet == "eth0"
    assert opts.ifnet_ip == IPv4Address("10.0.0.1")


def test_short_flags_and_count():
    opts = parse_cli_args(
        ["-c", "/tmp/conf.toml", "-m", "10.1.2.3:4995", "-vvv", "--ifnet-ip", "10.0.0.1"]
    )
    assert opts.config_file == "/tmp/conf.toml"
    assert opts.master_ip == "10.1.2.3:4995"
    assert opts.verbose == 3


def test_environment_values(monkeypatch):
    monkeypatch.setenv("IFNET", "wlan0")
    monkeypatch.setenv("IFNET_IP", "192.168.0.10")
    monkeypatch.setenv("KERNEL_LOCATION", "/boot/kernel")
    opts = parse_cli_args([])
    assert opts.ifnet == "wlan0"
    assert opts.ifnet_ip == IPv4Address("192.168.0.10")
    assert opts.kernel_path == Path("/boot/kernel")


def test_command_line_beats_environment(monkeypatch):
    monkeypatch.setenv("IFNET", "wlan0")
    opts = parse_cli_args(["--ifnet", "eth1", "--ifnet-ip", "10.0.0.1"])
    assert opts.ifnet == "eth1"


def test_missing_ifnet_ip_is_an_error():
    with pytest.raises(SystemExit):
        parse_cli_args([])


def test_invalid_ifnet_ip_is_an_error():
    with pytest.raises(SystemExit):
        parse_cli_args(["--ifnet-ip", "not-an-ip"])


def test_function_configuration_from_cli():
    opts = parse_cli_args(
        ["--ifnet-ip", "10.0.0.1", "--firecracker-path", "/usr/bin/fc", "--ifnet", "br0"]
    )
    config = FnConfiguration.from_cli(opts)
    assert config.firecracker_location == Path("/usr/bin/fc")
    assert config.kernel_location == opts.kernel_path
    assert config.ifnet == "br0"
    assert config.ifnet_ip == opts.ifnet_ip