"""Workload definitions as received by a worker node."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from rik.definition import EnvConfig, Function, PortConfig
from rik.utils import get_random_hash

logger = logging.getLogger(__name__)


def _require_str(data: Any, key: str, owner: str) -> str:
    if not isinstance(data, Mapping):
        raise ValueError(f"{owner}: expected an object")
    if key not in data:
        raise ValueError(f"{owner}: missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"{owner}: field `{key}` must be a string")
    return value


@dataclass
class ScheduledContainer:
    """A container to run on the node, with the id given to it once scheduled."""

    name: str
    image: str
    id: str | None = None
    env: list[EnvConfig] | None = None
    ports: PortConfig | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScheduledContainer":
        name = _require_str(data, "name", "Container")
        image = _require_str(data, "image", "Container")
        container_id = data.get("id")
        if container_id is not None and not isinstance(container_id, str):
            raise ValueError("Container: field `id` must be a string")
        env = data.get("env")
        if env is not None and not isinstance(env, list):
            raise ValueError("Container: field `env` must be a list")
        ports = data.get("ports")
        return cls(
            name=name,
            image=image,
            id=container_id,
            env=None if env is None else [EnvConfig.from_dict(item) for item in env],
            ports=None if ports is None else PortConfig.from_dict(ports),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "env": None if self.env is None else [item.to_dict() for item in self.env],
            "ports": None if self.ports is None else self.ports.to_dict(),
        }

    def get_uuid(self) -> str:
        """A short random suffix used to make container ids unique."""
        return get_random_hash(5)


@dataclass
class ScheduledWorkload:
    """A workload scheduled on this node."""

    api_version: str
    kind: str
    name: str
    containers: list[ScheduledContainer] = field(default_factory=list)
    function: Function | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScheduledWorkload":
        api_version = _require_str(data, "apiVersion", "WorkloadDefinition")
        kind = _require_str(data, "kind", "WorkloadDefinition")
        name = _require_str(data, "name", "WorkloadDefinition")
        spec = data.get("spec")
        if not isinstance(spec, Mapping):
            raise ValueError("WorkloadDefinition: missing field `spec`")
        containers = spec.get("containers")
        if not isinstance(containers, list):
            raise ValueError("Spec: missing field `containers`")
        function = spec.get("function")
        return cls(
            api_version=api_version,
            kind=kind,
            name=name,
            containers=[ScheduledContainer.from_dict(item) for item in containers],
            function=None if function is None else Function.from_dict(function),
        )

    @classmethod
    def from_json(cls, text: str) -> "ScheduledWorkload":
        return cls.from_dict(json.loads(text))

    def get_containers(self, instance_id: str) -> list[ScheduledContainer]:
        """Copies of the containers, each with a unique id for this instance."""
        containers = []
        for container in self.containers:
            logger.debug("Container: %r", container)
            container_id = f"{instance_id}-{container.name}-{container.get_uuid()}"
            containers.append(replace(container, id=container_id))
        return containers