"""Workloads, instances and configuration as seen by the command-line client."""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_ENV_PREFIX = "RIK_"


class WorkloadError(Exception):
    """A workload file could not be read or decoded."""


def _field(data: Any, key: str, owner: str) -> Any:
    if not isinstance(data, Mapping):
        raise ValueError(f"{owner}: expected an object")
    if key not in data:
        raise ValueError(f"{owner}: missing field `{key}`")
    return data[key]


def _str_field(data: Any, key: str, owner: str) -> str:
    value = _field(data, key, owner)
    if not isinstance(value, str):
        raise ValueError(f"{owner}: field `{key}` must be a string")
    return value


@dataclass
class WorkloadContainer:
    """One container of a workload."""

    name: str
    image: str


@dataclass
class WorkloadSpec:
    """The containers a workload runs."""

    containers: list[WorkloadContainer] = field(default_factory=list)


@dataclass
class Workload:
    """A workload as sent to and listed by the controller."""

    api_version: str
    kind: str
    name: str
    spec: WorkloadSpec

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Workload":
        """Decode a workload; raises ValueError on malformed data."""
        spec = _field(data, "spec", "Workload")
        containers = _field(spec, "containers", "Spec")
        if not isinstance(containers, list):
            raise ValueError("Spec: field `containers` must be a list")
        return cls(
            api_version=_str_field(data, "api_version", "Workload"),
            kind=_str_field(data, "kind", "Workload"),
            name=_str_field(data, "name", "Workload"),
            spec=WorkloadSpec(
                containers=[
                    WorkloadContainer(
                        name=_str_field(item, "name", "Container"),
                        image=_str_field(item, "image", "Container"),
                    )
                    for item in containers
                ]
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "api_version": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "spec": {
                "containers": [
                    {"name": c.name, "image": c.image} for c in self.spec.containers
                ]
            },
        }

    @classmethod
    def from_json(cls, text: str) -> "Workload":
        try:
            return cls.from_dict(json.loads(text))
        except ValueError as error:
            raise WorkloadError(
                f"Failed to deserialize the workload. Details : {error}"
            ) from error

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "Workload":
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as error:
            raise WorkloadError(
                f"Unable to read the workload file. Details : {error}"
            ) from error
        return cls.from_json(text)


@dataclass
class InstanceView:
    """An instance as listed by the controller."""

    status: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InstanceView":
        return cls(status=_str_field(data, "status", "Instance"))


class ConfigurationError(Exception):
    """The client configuration could not be loaded."""


@dataclass
class ClusterConfig:
    """Name and endpoint of the cluster to talk to."""

    name: str = "RIK-local"
    server: str = "http://127.0.0.1:5000"


def _config_path() -> Path:
    explicit = os.environ.get("RIKCONFIG")
    if explicit is not None:
        return Path(explicit)
    try:
        home = Path.home()
    except RuntimeError as error:
        raise ConfigurationError(
            "Wrong operating system, cannot find home directory"
        ) from error
    return home / ".rik" / "config.json"


def _read_config_file(path: Path) -> dict[str, Any]:
    candidates = [path] if path.suffix else [path.with_suffix(".json"), path.with_suffix(".toml")]
    for candidate in candidates:
        if not candidate.is_file():
            continue
        text = candidate.read_text(encoding="utf-8")
        data = tomllib.loads(text) if candidate.suffix == ".toml" else json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"configuration file {candidate} must hold an object")
        return data
    raise FileNotFoundError(f'configuration file "{path}" not found')


def _apply_environment(data: dict[str, Any]) -> None:
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX) or len(key) == len(_ENV_PREFIX):
            continue
        *parents, leaf = key[len(_ENV_PREFIX):].lower().split("_")
        node = data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value


@dataclass
class Configuration:
    """Settings the client needs to reach a cluster."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)

    @classmethod
    def load(cls) -> "Configuration":
        """Read the file named by RIKCONFIG (or ~/.rik/config.json), then RIK_* variables."""
        path = _config_path()
        try:
            data = _read_config_file(path)
            _apply_environment(data)
            cluster = _field(data, "cluster", "Configuration")
            return cls(
                cluster=ClusterConfig(
                    name=_str_field(cluster, "name", "Cluster"),
                    server=_str_field(cluster, "server", "Cluster"),
                )
            )
        except (OSError, ValueError) as error:
            raise ConfigurationError(
                f"An error occurred when trying to load the configuration: {error}"
            ) from error