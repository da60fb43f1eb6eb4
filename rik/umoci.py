"""Unpacking OCI images into runtime bundles with umoci."""

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


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"UmociConfiguration: field `{key}` must be a string")
    return value


def _duration_from_value(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        secs, nanos = value.get("secs"), value.get("nanos", 0)
        if any(isinstance(v, bool) or not isinstance(v, int) or v < 0 for v in (secs, nanos)):
            raise ValueError(f"UmociConfiguration: invalid duration {value!r}")
        return secs + nanos / 1e9
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
        return float(value)
    raise ValueError(f"UmociConfiguration: invalid duration {value!r}")


def _duration_to_value(seconds: float) -> dict[str, int]:
    secs = int(seconds)
    nanos = round((seconds - secs) * 1_000_000_000)
    if nanos >= 1_000_000_000:
        secs, nanos = secs + 1, nanos - 1_000_000_000
    return {"secs": secs, "nanos": nanos}


@dataclass
class UmociConfiguration:
    """Settings of the umoci bundle manager."""

    debug: bool = False
    command: Path | None = None
    bundles_directory: Path | None = None
    timeout: float | None = None
    log_level: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UmociConfiguration":
        if not isinstance(data, Mapping) or "debug" not in data:
            raise ValueError("UmociConfiguration: missing field `debug`")
        if not isinstance(data["debug"], bool):
            raise ValueError("UmociConfiguration: field `debug` must be a boolean")
        command = _optional_str(data, "command")
        bundles = _optional_str(data, "bundles_directory")
        return cls(
            debug=data["debug"],
            command=None if command is None else Path(command),
            bundles_directory=None if bundles is None else Path(bundles),
            timeout=_duration_from_value(data.get("timeout")),
            log_level=_optional_str(data, "log_level"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable form; unset options are left out."""
        data: dict[str, Any] = {"debug": self.debug}
        if self.command is not None:
            data["command"] = os.fspath(self.command)
        if self.bundles_directory is not None:
            data["bundles_directory"] = os.fspath(self.bundles_directory)
        if self.timeout is not None:
            data["timeout"] = _duration_to_value(self.timeout)
        if self.log_level is not None:
            data["log_level"] = self.log_level
        return data


@dataclass
class UnpackArgs:
    """Options of `umoci unpack`."""

    image: Path
    keep_dirlinks: bool = False
    uid_map: str | None = None
    gid_map: str | None = None
    rootless: bool = False

    def args(self) -> list[str]:
        args: list[str] = []
        if self.keep_dirlinks:
            args.append("--keep-dirlinks")
        if self.uid_map is not None:
            args += ["--uid-map", self.uid_map]
        if self.gid_map is not None:
            args += ["--gid-map", self.gid_map]
        if self.rootless:
            args.append("--rootless")
        args += ["--image", os.fspath(self.image)]
        return args


class Umoci:
    """Drives the umoci binary."""

    def __init__(self, config: UmociConfiguration) -> None:
        logger.debug("Initializing Umoci...")
        command = config.command if config.command is not None else find_binary("umoci")
        if command is None:
            raise ToolNotFoundError("umoci")
        self.command = Path(command)
        self.timeout = config.timeout if config.timeout is not None else DEFAULT_TIMEOUT
        if config.bundles_directory is None:
            raise InvalidPathError(FileNotFoundError("no bundles directory configured"))
        self.bundles_directory = canonical_path(config.bundles_directory)
        self.verbose = config.debug
        self.log_level = config.log_level
        logger.debug("Umoci initialized.")

    def args(self) -> list[str]:
        """Global options passed before every umoci command."""
        args: list[str] = []
        if self.verbose:
            args.append("--verbose")
        if self.log_level is not None:
            args += ["--log", self.log_level]
        return args

    def _exec(self, args: list[str]) -> str:
        logger.debug("Executing umoci command: %s", " ".join(args))
        result = run_tool("umoci", self.command, [*self.args(), *args], self.timeout)
        if result.stderr:
            if "config.json already exists" in result.stderr:
                logger.warning("A config.json already exists for this image.")
            elif not result.success:
                raise ToolFailedError("umoci", result.stdout, result.stderr)
        return result.stdout

    def unpack(self, bundle_id: str, opts: UnpackArgs | None = None) -> str:
        """Unpack an image into a bundle named `bundle_id`; return the bundle path."""
        logger.debug("Unpacking bundle: %s", bundle_id)
        args = ["unpack"]
        if opts is not None:
            args += opts.args()
        bundle_path = f"{self.bundles_directory}/{bundle_id}"
        args.append(bundle_path)
        self._exec(args)
        return bundle_path