import json

import pytest

from rik.definition import (
    DEFAULT_FUNCTION_RUNTIME_PORT,
    Container,
    EnvConfig,
    Function,
    FunctionExecution,
    FunctionPort,
    NetworkPortExposureType,
    PortConfig,
    Spec,
    WorkloadDefinition,
    WorkloadKind,
)


def _function_workload():
    return WorkloadDefinition(
        api_version="v0",
        kind=WorkloadKind.FUNCTION,
        name="fn",
        spec=Spec(function=Function(execution=FunctionExecution("https://files.example.com/rootfs.ext4"))),
    )


def _pod_workload():
    return WorkloadDefinition(
        api_version="v0",
        kind=WorkloadKind.POD,
        name="pod",
        spec=Spec(
            containers=[
                Container(
                    name="web",
                    image="alpine:latest",
                    env=[EnvConfig("KEY", "VALUE")],
                    ports=PortConfig(port=80, target_port=8000, type="NodePort", protocol="tcp"),
                )
            ]
        ),
        replicas=2,
    )


@pytest.mark.parametrize("make", [_function_workload, _pod_workload])
def test_json_round_trip(make):
    workload = make()
    assert WorkloadDefinition.from_json(workload.to_json()) == workload


def test_wire_field_names():
    workload = _function_workload()
    workload.set_function_port(45000)
    data = json.loads(workload.to_json())
    assert data["apiVersion"] == "v0"
    assert data["kind"] == "Function"
    assert data["spec"]["function"]["exposure"] == {
        "port": 45000,
        "targetPort": DEFAULT_FUNCTION_RUNTIME_PORT,
        "type": "NodePort",
    }


def test_set_function_port_uses_default_runtime_port():
    workload = _function_workload()
    workload.set_function_port(45001)
    exposure = workload.spec.function.exposure
    assert exposure.port == 45001
    assert exposure.target_port == 8080
    assert exposure.port_type is NetworkPortExposureType.NODE_PORT


def test_set_function_port_on_pod_leaves_it_unchanged():
    workload = _pod_workload()
    workload.set_function_port(45000)
    assert workload.spec.function is None
    assert workload.is_function() is False


def test_spec_defaults_when_fields_missing():
    workload = WorkloadDefinition.from_dict({"apiVersion": "v0", "kind": "Pod", "name": "x", "spec": {}})
    assert workload.spec.containers == []
    assert workload.spec.function is None
    assert workload.replicas is None


def test_workload_kind_parse_and_display():
    assert WorkloadKind.parse("Pod") is WorkloadKind.POD
    assert str(WorkloadKind.FUNCTION) == "Function"


def test_workload_kind_parse_unknown():
    with pytest.raises(ValueError):
        WorkloadKind.parse("VirtualMachine")


def test_missing_field_raises():
    with pytest.raises(ValueError, match="apiVersion"):
        WorkloadDefinition.from_dict({"kind": "Pod", "name": "x", "spec": {}})


def test_invalid_rootfs_raises():
    with pytest.raises(ValueError):
        FunctionExecution.from_dict({"rootfs": "not a url"})


def test_out_of_range_port_raises():
    with pytest.raises(ValueError):
        FunctionPort.from_dict({"port": 70000, "targetPort": 1, "type": "NodePort"})


def test_port_config_keeps_snake_case_target_port():
    config = PortConfig(port=1, target_port=2, type="NodePort")
    assert PortConfig.from_dict(config.to_dict()) == config
    assert "target_port" in config.to_dict()