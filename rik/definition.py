"""Workload definitions as submitted to the cluster."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

DEFAULT_FUNCTION_RUNTIME_PORT = 8080


def _require(data: Any, key: str, owner: str) -> Any:
    if not isinstance(data, Mapping):
        raise ValueError(f"{owner}: expected an object")
    if key not in data:
        raise ValueError(f"{owner}: missing field `{key}`")
    return data[key]


def _string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"field `{name}` must be a string")
    return value


def _optional_string(value: Any, name: str) -> str | None:
    return None if value is None else _string(value, name)


def _u16(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFFFF:
        raise ValueError(f"field `{name}` must be an integer between 0 and 65535")
    return value


@dataclass
class EnvConfig:
    """An environment variable given to a container."""

    name: str
    value: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EnvConfig":
        return cls(
            name=_string(_require(data, "name", "EnvConfig"), "name"),
            value=_string(_require(data, "value", "EnvConfig"), "value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass
class PortConfig:
    """A port mapping for a container."""

    port: int
    target_port: int
    type: str
    protocol: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PortConfig":
        return cls(
            port=_u16(_require(data, "port", "PortConfig"), "port"),
            target_port=_u16(_require(data, "target_port", "PortConfig"), "target_port"),
            type=_string(_require(data, "type", "PortConfig"), "type"),
            protocol=_optional_string(data.get("protocol"), "protocol"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "port": self.port,
            "target_port": self.target_port,
            "protocol": self.protocol,
            "type": self.type,
        }


@dataclass
class Container:
    """A container of a pod workload."""

    name: str
    image: str
    env: list[EnvConfig] | None = None
    ports: PortConfig | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Container":
        env = data.get("env") if isinstance(data, Mapping) else None
        ports = data.get("ports") if isinstance(data, Mapping) else None
        if env is not None and not isinstance(env, list):
            raise ValueError("field `env` must be a list")
        return cls(
            name=_string(_require(data, "name", "Container"), "name"),
            image=_string(_require(data, "image", "Container"), "image"),
            env=None if env is None else [EnvConfig.from_dict(item) for item in env],
            ports=None if ports is None else PortConfig.from_dict(ports),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "image": self.image,
            "env": None if self.env is None else [item.to_dict() for item in self.env],
            "ports": None if self.ports is None else self.ports.to_dict(),
        }


@dataclass
class FunctionExecution:
    """Where a function's root filesystem can be downloaded from."""

    rootfs: str

    def __post_init__(self) -> None:
        if not isinstance(self.rootfs, str) or not urlsplit(self.rootfs).scheme:
            raise ValueError(f"invalid rootfs URL: {self.rootfs!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FunctionExecution":
        return cls(rootfs=_string(_require(data, "rootfs", "FunctionExecution"), "rootfs"))

    def to_dict(self) -> dict[str, Any]:
        return {"rootfs": self.rootfs}


class NetworkPortExposureType(StrEnum):
    """How a function port is exposed."""

    NODE_PORT = "NodePort"


@dataclass
class FunctionPort:
    """The port a function is reachable on and the port it listens to."""

    port: int
    target_port: int
    port_type: NetworkPortExposureType = NetworkPortExposureType.NODE_PORT

    @classmethod
    def with_default_target(cls, port: int) -> "FunctionPort":
        """Expose `port`, forwarding to the default runtime port."""
        return cls(port=_u16(port, "port"), target_port=DEFAULT_FUNCTION_RUNTIME_PORT)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FunctionPort":
        raw_type = _require(data, "type", "FunctionPort")
        try:
            port_type = NetworkPortExposureType(raw_type)
        except ValueError:
            raise ValueError(f"unknown port exposure type: {raw_type!r}") from None
        return cls(
            port=_u16(_require(data, "port", "FunctionPort"), "port"),
            target_port=_u16(_require(data, "targetPort", "FunctionPort"), "targetPort"),
            port_type=port_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"port": self.port, "targetPort": self.target_port, "type": str(self.port_type)}


@dataclass
class Function:
    """A function workload: its root filesystem and its exposure."""

    execution: FunctionExecution
    exposure: FunctionPort | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Function":
        exposure = data.get("exposure") if isinstance(data, Mapping) else None
        return cls(
            execution=FunctionExecution.from_dict(_require(data, "execution", "Function")),
            exposure=None if exposure is None else FunctionPort.from_dict(exposure),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution": self.execution.to_dict(),
            "exposure": None if self.exposure is None else self.exposure.to_dict(),
        }


@dataclass
class Spec:
    """What a workload runs."""

    containers: list[Container] = field(default_factory=list)
    function: Function | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Spec":
        if not isinstance(data, Mapping):
            raise ValueError("Spec: expected an object")
        containers = data.get("containers", [])
        if not isinstance(containers, list):
            raise ValueError("field `containers` must be a list")
        function = data.get("function")
        return cls(
            containers=[Container.from_dict(item) for item in containers],
            function=None if function is None else Function.from_dict(function),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "containers": [item.to_dict() for item in self.containers],
            "function": None if self.function is None else self.function.to_dict(),
        }


class WorkloadKind(StrEnum):
    """Kind of a workload."""

    POD = "Pod"
    FUNCTION = "Function"

    @classmethod
    def parse(cls, kind: str) -> "WorkloadKind":
        """Parse a kind name, raising ValueError for unknown kinds."""
        try:
            return cls(kind)
        except ValueError:
            raise ValueError(f"Unknown workload kind: {kind!r}") from None


@dataclass
class WorkloadDefinition:
    """A workload as described by a user."""

    api_version: str
    kind: WorkloadKind
    name: str
    spec: Spec
    replicas: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkloadDefinition":
        replicas = data.get("replicas") if isinstance(data, Mapping) else None
        return cls(
            api_version=_string(
                _require(data, "apiVersion", "WorkloadDefinition"), "apiVersion"
            ),
            kind=WorkloadKind.parse(_require(data, "kind", "WorkloadDefinition")),
            name=_string(_require(data, "name", "WorkloadDefinition"), "name"),
            spec=Spec.from_dict(_require(data, "spec", "WorkloadDefinition")),
            replicas=None if replicas is None else _u16(replicas, "replicas"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": str(self.kind),
            "name": self.name,
            "spec": self.spec.to_dict(),
            "replicas": self.replicas,
        }

    @classmethod
    def from_json(cls, text: str) -> "WorkloadDefinition":
        return cls.from_dict(json.loads(text))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def is_function(self) -> bool:
        """Whether the workload is a function."""
        return self.kind is WorkloadKind.FUNCTION

    def set_function_port(self, port: int) -> None:
        """Expose the function on `port`, when the workload has a function."""
        if not self.is_function():
            logger.error("Cannot set function port on non-function workload")
        if self.spec.function is not None:
            self.spec.function.exposure = FunctionPort.with_default_target(port)