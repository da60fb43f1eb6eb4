"""Configuration file of the node agent."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from rik.image_manager import ImageManagerConfiguration
from rik.riklet_cli import DEFAULT_COMMAND_TIMEOUT, CliConfiguration
from rik.runc_args import RuncConfiguration
from rik.skopeo import SkopeoConfiguration
from rik.umoci import UmociConfiguration
from rik.utils import create_directory_if_not_exists

logger = logging.getLogger(__name__)

_TIMEOUT = DEFAULT_COMMAND_TIMEOUT / 1000


class ConfigurationError(Exception):
    """The configuration could not be loaded, written or applied."""


def _default_runner() -> RuncConfiguration:
    return RuncConfiguration(debug=False, rootless=False, timeout=_TIMEOUT)


def _default_manager() -> ImageManagerConfiguration:
    return ImageManagerConfiguration(
        image_puller=SkopeoConfiguration(
            images_directory=Path("/var/lib/riklet/images"),
            timeout=_TIMEOUT,
            debug=False,
            insecure_policy=False,
        ),
        oci_manager=UmociConfiguration(
            timeout=_TIMEOUT,
            bundles_directory=Path("/var/lib/riklet/bundles"),
            debug=False,
        ),
    )


@dataclass
class Configuration:
    """Where the master is and how containers are run and images pulled."""

    master_ip: str = "http://127.0.0.1:4995"
    log_level: str = "info"
    runner: RuncConfiguration = field(default_factory=_default_runner)
    manager: ImageManagerConfiguration = field(default_factory=_default_manager)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Configuration":
        if not isinstance(data, Mapping):
            raise ValueError("Configuration: expected a table")
        for key in ("master_ip", "log_level", "runner", "manager"):
            if key not in data:
                raise ValueError(f"Configuration: missing field `{key}`")
        for key in ("master_ip", "log_level"):
            if not isinstance(data[key], str):
                raise ValueError(f"Configuration: field `{key}` must be a string")
        return cls(
            master_ip=data["master_ip"],
            log_level=data["log_level"],
            runner=RuncConfiguration.from_dict(data["runner"]),
            manager=ImageManagerConfiguration.from_dict(data["manager"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "master_ip": self.master_ip,
            "log_level": self.log_level,
            "runner": self.runner.to_dict(),
            "manager": self.manager.to_dict(),
        }

    @classmethod
    def read(cls, path: str | os.PathLike[str]) -> "Configuration":
        """Read a TOML configuration file."""
        logger.debug("Reading configuration from file %s", path)
        try:
            contents = Path(path).read_bytes()
        except OSError as error:
            raise ConfigurationError(
                f"Unable to load the configuration file. Error {error}"
            ) from error
        try:
            return cls.from_dict(tomllib.loads(contents.decode("utf-8")))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError, ValueError) as error:
            raise ConfigurationError(
                f"Unable to parse the configuration file. Error {error}"
            ) from error

    def write(self, path: str | os.PathLike[str]) -> None:
        """Write the configuration as TOML, creating parent directories."""
        target = Path(path)
        try:
            text = tomli_w.dumps(self.to_dict())
        except (TypeError, ValueError) as error:
            raise ConfigurationError(
                f"Unable to encode the configuration in TOML format. Error {error}"
            ) from error
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            handle = target.open("w", encoding="utf-8")
        except OSError as error:
            raise ConfigurationError(
                f"Unable to create the configuration. Error {error}"
            ) from error
        with handle:
            try:
                handle.write(text)
            except OSError as error:
                raise ConfigurationError(
                    "An error occured when trying to write the configuration. "
                    f"Error {error}"
                ) from error

    @classmethod
    def load(cls, opts: CliConfiguration) -> "Configuration":
        """Read the configuration file, creating it with defaults if missing."""
        logger.debug("Loading configuration")
        path = Path(opts.config_file)
        if not path.exists():
            configuration = cls()
            configuration.override_config(opts)
            logger.info(
                "No configuration file found at %s. Creating a new configuration file "
                "with the default configuration.",
                path,
            )
            configuration.write(path)
        else:
            configuration = cls.read(path)
            if opts.override_config:
                configuration.override_config(opts)
        logger.debug("Loaded configuration from file %s", path)
        configuration.bootstrap()
        return configuration

    def override_config(self, opts: CliConfiguration) -> None:
        """Apply values given on the command line."""
        if opts.master_ip is not None:
            self.master_ip = f"http://{opts.master_ip}"

    def bootstrap(self) -> None:
        """Create the directories the agent works in."""
        logger.debug("Create all directories and files used by Riklet to work properly")
        for directory in (
            self.manager.oci_manager.bundles_directory,
            self.manager.image_puller.images_directory,
        ):
            if directory is None:
                continue
            try:
                create_directory_if_not_exists(Path(directory))
            except OSError as error:
                raise ConfigurationError(
                    f"An error occured when trying to create the {directory} directory. "
                    f"Error {error}"
                ) from error