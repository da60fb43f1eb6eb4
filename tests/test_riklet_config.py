from pathlib import Path

import pytest

from rik.riklet_cli import parse_cli_args
from rik.riklet_config import Configuration, ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FIRECRACKER_LOCATION", "KERNEL_LOCATION", "IFNET", "IFNET_IP"):
        monkeypatch.delenv(name, raising=False)


def local_configuration(tmp_path: Path) -> Configuration:
    config = Configuration()
    config.manager.oci_manager.bundles_directory = tmp_path / "bundles"
    config.manager.image_puller.images_directory = tmp_path / "images"
    return config


def test_defaults():
    config = Configuration()
    assert config.master_ip == "http://127.0.0.1:4995"
    assert config.log_level == "info"
    assert config.runner.timeout == 30.0
    assert config.manager.oci_manager.bundles_directory == Path("/var/lib/riklet/bundles")
    assert config.manager.image_puller.images_directory == Path("/var/lib/riklet/images")


def test_dict_round_trip():
    config = Configuration()
    assert Configuration.from_dict(config.to_dict()) == config


def test_from_dict_missing_field():
    data = Configuration().to_dict()
    del data["runner"]
    with pytest.raises(ValueError):
        Configuration.from_dict(data)


def test_write_read_round_trip(tmp_path):
    config = local_configuration(tmp_path)
    path = tmp_path / "nested" / "configuration.toml"
    config.write(path)
    assert path.exists()
    assert Configuration.read(path) == config


def test_read_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        Configuration.read(tmp_path / "missing.toml")


def test_read_invalid_toml(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("master_ip = [unterminated")
    with pytest.raises(ConfigurationError):
        Configuration.read(path)


def test_read_missing_field(tmp_path):
    path = tmp_path / "partial.toml"
    path.write_text('master_ip = "http://example.com"\n')
    with pytest.raises(ConfigurationError):
        Configuration.read(path)


def test_override_config():
    config = Configuration()
    config.override_config(parse_cli_args(["--ifnet-ip", "10.0.0.1", "-m", "10.1.2.3:4995"]))
    assert config.master_ip == "http://10.1.2.3:4995"


def test_override_without_master_keeps_value():
    config = Configuration()
    config.override_config(parse_cli_args(["--ifnet-ip", "10.0.0.1"]))
    assert config.master_ip == Configuration().master_ip


def test_load_existing_file_without_override(tmp_path):
    config = local_configuration(tmp_path)
    path = tmp_path / "configuration.toml"
    config.write(path)
    opts = parse_cli_args(["--ifnet-ip", "10.0.0.1", "-c", str(path), "-m", "10.9.9.9:1"])
    loaded = Configuration.load(opts)
    assert loaded == config
    assert (tmp_path / "bundles").is_dir()
    assert (tmp_path / "images").is_dir()


def test_load_existing_file_with_override(tmp_path):
    config = local_configuration(tmp_path)
    path = tmp_path / "configuration.toml"
    config.write(path)
    opts = parse_cli_args(
        ["--ifnet-ip", "10.0.0.1", "-c", str(path), "-m", "10.9.9.9:1", "--override-config"]
    )
    loaded = Configuration.load(opts)
    assert loaded.master_ip == "http://10.9.9.9:1"
    assert loaded.runner == config.runner


def test_bootstrap_creates_directories(tmp_path):
    config = local_configuration(tmp_path)
    config.bootstrap()
    assert config.manager.oci_manager.bundles_directory.is_dir()
    assert config.manager.image_puller.images_directory.is_dir()


def test_bootstrap_fails_when_path_is_a_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    config = local_configuration(tmp_path)
    config.manager.oci_manager.bundles_directory = blocker / "bundles"
    with pytest.raises(ConfigurationError):
        config.bootstrap()