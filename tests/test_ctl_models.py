import json

import pytest

from rik.ctl_models import (
    ClusterConfig,
    Configuration,
    ConfigurationError,
    InstanceView,
    Workload,
    WorkloadContainer,
    WorkloadError,
    WorkloadSpec,
)

WORKLOAD = {
    "api_version": "v0",
    "kind": "Pod",
    "name": "devopsdday-workload",
    "spec": {"containers": [{"name": "web", "image": "nginx:latest"}]},
}


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("RIKCONFIG", "RIK_CLUSTER_NAME", "RIK_CLUSTER_SERVER"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_workload_from_dict():
    workload = Workload.from_dict(WORKLOAD)
    assert workload.name == "devopsdday-workload"
    assert workload.spec.containers == [WorkloadContainer("web", "nginx:latest")]


def test_workload_round_trip():
    workload = Workload("v0", "Pod", "w", WorkloadSpec([WorkloadContainer("a", "b:c")]))
    assert Workload.from_dict(workload.to_dict()) == workload
    assert Workload.from_json(json.dumps(workload.to_dict())) == workload


def test_workload_from_json_invalid():
    with pytest.raises(WorkloadError, match="^Failed to deserialize the workload"):
        Workload.from_json("{not json")


def test_workload_from_json_missing_field():
    data = dict(WORKLOAD)
    del data["spec"]
    with pytest.raises(WorkloadError, match="Failed to deserialize"):
        Workload.from_json(json.dumps(data))


def test_workload_from_file(tmp_path):
    path = tmp_path / "workload.json"
    path.write_text(json.dumps(WORKLOAD))
    assert Workload.from_file(path) == Workload.from_dict(WORKLOAD)


def test_workload_from_missing_file(tmp_path):
    with pytest.raises(WorkloadError, match="^Unable to read the workload file"):
        Workload.from_file(tmp_path / "absent.json")


def test_instance_view():
    assert InstanceView.from_dict({"status": "Running", "other": 1}).status == "Running"
    with pytest.raises(ValueError):
        InstanceView.from_dict({})


def test_cluster_defaults():
    config = Configuration()
    assert config.cluster == ClusterConfig("RIK-local", "http://127.0.0.1:5000")


def test_load_from_rikconfig(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"cluster": {"name": "prod", "server": "http://localhost:9"}}))
    clean_env.setenv("RIKCONFIG", str(path))
    config = Configuration.load()
    assert config.cluster == ClusterConfig("prod", "http://localhost:9")


def test_load_environment_overrides(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"cluster": {"name": "prod", "server": "http://localhost:9"}}))
    clean_env.setenv("RIKCONFIG", str(path))
    clean_env.setenv("RIK_CLUSTER_SERVER", "http://localhost:7")
    config = Configuration.load()
    assert config.cluster.server == "http://localhost:7"
    assert config.cluster.name == "prod"


def test_load_toml_file(tmp_path, clean_env):
    path = tmp_path / "config.toml"
    path.write_text('[cluster]\nname = "t"\nserver = "http://localhost:1"\n')
    clean_env.setenv("RIKCONFIG", str(path))
    assert Configuration.load().cluster.name == "t"


def test_load_missing_file(tmp_path, clean_env):
    clean_env.setenv("RIKCONFIG", str(tmp_path / "absent.json"))
    with pytest.raises(ConfigurationError):
        Configuration.load()


def test_load_missing_cluster_key(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"other": {}}))
    clean_env.setenv("RIKCONFIG", str(path))
    with pytest.raises(ConfigurationError):
        Configuration.load()