"""Copying container images into a local OCI layout with skopeo."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rik.process import (
    InvalidPathError,
    ToolFailedError,
    ToolNotFoundError,
    canonical_path,
    run_tool,
)
from rik.utils import find_binary

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0

_OPTIONAL_STRINGS = ("override_arch", "override_os", "override_variant", "policy")
_OPTIONAL_PATHS = ("command", "images_directory", "registries", "tmp_dir")


def _bool(data: Any, key: str, owner: str) -> bool:
    if not isinstance(data, Mapping) or key not in data:
        raise ValueError(f"{owner}: missing field `{key}`")
    value = data[key]
    if not isinstance(value, bool):
        raise ValueError(f"{owner}: field `{key}` must be a boolean")
    return value


def _optional_str(data: Mapping[str, Any], key: str, owner: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{owner}: field `{key}` must be a string")
    return value


def _optional_path(data: Mapping[str, Any], key: str, owner: str) -> Path | None:
    value = _optional_str(data, key, owner)
    return None if value is None else Path(value)


def _duration_from_value(value: Any, owner: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        secs, nanos = value.get("secs"), value.get("nanos", 0)
        if any(isinstance(v, bool) or not isinstance(v, int) or v < 0 for v in (secs, nanos)):
            raise ValueError(f"{owner}: invalid duration {value!r}")
        return secs + nanos / 1e9
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
        return float(value)
    raise ValueError(f"{owner}: invalid duration {value!r}")


def _duration_to_value(seconds: float) -> dict[str, int]:
    secs = int(seconds)
    nanos = round((seconds - secs) * 1_000_000_000)
    if nanos >= 1_000_000_000:
        secs, nanos = secs + 1, nanos - 1_000_000_000
    return {"secs": secs, "nanos": nanos}


@dataclass
class SkopeoConfiguration:
    """Settings of the skopeo image puller."""

    debug: bool = False
    insecure_policy: bool = False
    command: Path | None = None
    images_directory: Path | None = None
    override_arch: str | None = None
    override_os: str | None = None
    override_variant: str | None = None
    policy: str | None = None
    registries: Path | None = None
    tmp_dir: Path | None = None
    timeout: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkopeoConfiguration":
        owner = "SkopeoConfiguration"
        return cls(
            debug=_bool(data, "debug", owner),
            insecure_policy=_bool(data, "insecure_policy", owner),
            timeout=_duration_from_value(data.get("timeout"), owner),
            **{key: _optional_str(data, key, owner) for key in _OPTIONAL_STRINGS},
            **{key: _optional_path(data, key, owner) for key in _OPTIONAL_PATHS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable form; unset options are left out."""
        data: dict[str, Any] = {"debug": self.debug, "insecure_policy": self.insecure_policy}
        for key in _OPTIONAL_PATHS:
            value = getattr(self, key)
            if value is not None:
                data[key] = os.fspath(value)
        for key in _OPTIONAL_STRINGS:
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.timeout is not None:
            data["timeout"] = _duration_to_value(self.timeout)
        return data


@dataclass
class CopyArgs:
    """Options of `skopeo copy`."""

    auth_file: Path | None = None

    def args(self) -> list[str]:
        if self.auth_file is None:
            return []
        return ["--authfile", str(canonical_path(self.auth_file))]


class Skopeo:
    """Drives the skopeo binary."""

    def __init__(self, config: SkopeoConfiguration) -> None:
        logger.debug("Initializing Skopeo...")
        command = config.command if config.command is not None else find_binary("skopeo")
        if command is None:
            raise ToolNotFoundError("skopeo")
        self.command = Path(command)
        self.timeout = config.timeout if config.timeout is not None else DEFAULT_TIMEOUT
        if config.images_directory is None:
            raise InvalidPathError(FileNotFoundError("no images directory configured"))
        self.images_directory = canonical_path(config.images_directory)
        self.debug = config.debug
        self.insecure_policy = config.insecure_policy
        self.override_arch = config.override_arch
        self.override_os = config.override_os
        self.override_variant = config.override_variant
        self.policy = config.policy
        self.registries = config.registries
        self.tmp_dir = config.tmp_dir
        logger.debug("Skopeo initialized.")

    def args(self) -> list[str]:
        """Global options passed before every skopeo command."""
        args: list[str] = []
        if self.debug:
            args.append("--debug")
        if self.insecure_policy:
            args.append("--insecure-policy")
        for flag, value in (
            ("--override-arch", self.override_arch),
            ("--override-os", self.override_os),
            ("--override-variant", self.override_variant),
            ("--policy", self.policy),
        ):
            if value is not None:
                args += [flag, value]
        if self.registries is not None:
            args += ["--registries.d", str(canonical_path(self.registries))]
        if self.tmp_dir is not None:
            args += ["--tmpdir", str(canonical_path(self.tmp_dir))]
        return args

    def _pull_path(self, directory: str) -> str:
        return f"oci:{self.images_directory}/{directory}"

    def _exec(self, args: list[str]) -> str:
        result = run_tool("skopeo", self.command, [*self.args(), *args], self.timeout)
        if not result.success:
            raise ToolFailedError("skopeo", result.stdout, result.stderr)
        return result.stdout

    def copy(self, src: str, uuid: str, opts: CopyArgs | None = None) -> str:
        """Copy `src` into the images directory; return the local image path."""
        logger.debug("Copying image from %s to %s", src, uuid)
        args = ["copy", src]
        if opts is not None:
            args += opts.args()
        pull_path = self._pull_path(uuid)
        args.append(pull_path)
        self._exec(args)
        return pull_path.split(":")[1]