"""Configuration, options and container state of the runc runtime."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rik.process import canonical_path

_FRACTION = re.compile(r"(\.\d{6})\d+")


def _duration_from_value(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        secs, nanos = value.get("secs"), value.get("nanos", 0)
        if any(isinstance(v, bool) or not isinstance(v, int) or v < 0 for v in (secs, nanos)):
            raise ValueError(f"RuncConfiguration: invalid duration {value!r}")
        return secs + nanos / 1e9
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
        return float(value)
    raise ValueError(f"RuncConfiguration: invalid duration {value!r}")


def _duration_to_value(seconds: float) -> dict[str, int]:
    secs = int(seconds)
    nanos = round((seconds - secs) * 1_000_000_000)
    if nanos >= 1_000_000_000:
        secs, nanos = secs + 1, nanos - 1_000_000_000
    return {"secs": secs, "nanos": nanos}


def _optional_str(data: Mapping[str, Any], key: str, owner: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{owner}: field `{key}` must be a string")
    return value


def _required_bool(data: Any, key: str, owner: str) -> bool:
    if not isinstance(data, Mapping) or key not in data:
        raise ValueError(f"{owner}: missing field `{key}`")
    if not isinstance(data[key], bool):
        raise ValueError(f"{owner}: field `{key}` must be a boolean")
    return data[key]


@dataclass
class RuncConfiguration:
    """Settings of the runc runtime."""

    rootless: bool = False
    debug: bool = False
    timeout: float | None = None
    command: Path | None = None
    root: Path | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuncConfiguration":
        owner = "RuncConfiguration"
        command = _optional_str(data, "command", owner)
        root = _optional_str(data, "root", owner)
        return cls(
            rootless=_required_bool(data, "rootless", owner),
            debug=_required_bool(data, "debug", owner),
            timeout=_duration_from_value(data.get("timeout")),
            command=None if command is None else Path(command),
            root=None if root is None else Path(root),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable form; unset options are left out."""
        data: dict[str, Any] = {"rootless": self.rootless, "debug": self.debug}
        if self.timeout is not None:
            data["timeout"] = _duration_to_value(self.timeout)
        if self.command is not None:
            data["command"] = os.fspath(self.command)
        if self.root is not None:
            data["root"] = os.fspath(self.root)
        return data


def _parse_created(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("Container: field `created` must be a string")
    text = _FRACTION.sub(r"\1", value)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"Container: timestamp {value!r} has no offset")
    return parsed.astimezone(timezone.utc)


@dataclass
class RuncContainer:
    """A container as reported by runc."""

    id: str | None = None
    pid: int | None = None
    status: str | None = None
    bundle: str | None = None
    rootfs: str | None = None
    created: datetime | None = None
    annotations: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuncContainer":
        owner = "Container"
        if not isinstance(data, Mapping):
            raise ValueError(f"{owner}: expected an object")
        pid = data.get("pid")
        if pid is not None and (isinstance(pid, bool) or not isinstance(pid, int) or pid < 0):
            raise ValueError(f"{owner}: field `pid` must be a non-negative integer")
        annotations = data.get("annotations")
        if annotations is not None and not (
            isinstance(annotations, Mapping)
            and all(isinstance(k, str) and isinstance(v, str) for k, v in annotations.items())
        ):
            raise ValueError(f"{owner}: field `annotations` must map strings to strings")
        return cls(
            id=_optional_str(data, "id", owner),
            pid=pid,
            status=_optional_str(data, "status", owner),
            bundle=_optional_str(data, "bundle", owner),
            rootfs=_optional_str(data, "rootfs", owner),
            created=_parse_created(data.get("created")),
            annotations=None if annotations is None else dict(annotations),
        )


@dataclass
class CreateArgs:
    """Options of `runc run` and `runc create`."""

    pid_file: Path | None = None
    console_socket: Path | None = None
    no_pivot: bool = False
    no_new_keyring: bool = False
    detach: bool = False

    def args(self) -> list[str]:
        args: list[str] = []
        if self.pid_file is not None:
            args += ["--pid-file", os.fspath(self.pid_file)]
        if self.console_socket is not None:
            args += ["--console-socket", str(canonical_path(self.console_socket))]
        if self.no_pivot:
            args.append("--no-pivot")
        if self.no_new_keyring:
            args.append("--no-new-keyring")
        if self.detach:
            args.append("--detach")
        return args


@dataclass
class KillArgs:
    """Options of `runc kill`."""

    all: bool = False

    def args(self) -> list[str]:
        return ["--all"] if self.all else []


@dataclass
class DeleteArgs:
    """Options of `runc delete`."""

    force: bool = False

    def args(self) -> list[str]:
        return ["--force"] if self.force else []