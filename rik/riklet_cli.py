"""Command-line options of the node agent."""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence
from dataclasses import dataclass
from ipaddress import AddressValueError, IPv4Address
from pathlib import Path

DEFAULT_COMMAND_TIMEOUT = 30000
"""Timeout of external tool commands, in milliseconds."""

DEFAULT_CONFIG_FILE = "/etc/riklet/configuration.toml"


@dataclass
class CliConfiguration:
    """Options given to the node agent on the command line or in the environment."""

    ifnet_ip: IPv4Address
    config_file: str = DEFAULT_CONFIG_FILE
    master_ip: str | None = None
    verbose: int = 0
    override_config: bool = False
    firecracker_path: Path = Path("firecracker")
    kernel_path: Path = Path("vmlinux.bin")
    ifnet: str = "eth0"


def _ipv4(text: str) -> IPv4Address:
    try:
        return IPv4Address(text)
    except (AddressValueError, ValueError):
        raise argparse.ArgumentTypeError(f"invalid IPv4 address: {text!r}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="Riklet",
        description="The node agent responsible to execute workloads on a cluster node.",
    )
    parser.add_argument("-V", "--version", action="version", version="%(prog)s 1.0.0")
    parser.add_argument(
        "-c", "--config-file", default=DEFAULT_CONFIG_FILE,
        help="The path to the configuration file. If the file not exists, it will be created.",
    )
    parser.add_argument("-m", "--master-ip", help="The IP of the master node.")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="The level of verbosity."
    )
    parser.add_argument(
        "--override-config", action="store_true",
        help="If set and there is a config file, values defined by the CLI override it.",
    )
    parser.add_argument(
        "--firecracker-path", type=Path, metavar="FIRECRACKER_LOCATION",
        default=os.environ.get("FIRECRACKER_LOCATION", "firecracker"),
        help="Path to the firecracker binary.",
    )
    parser.add_argument(
        "--kernel-path", type=Path, metavar="KERNEL_LOCATION",
        default=os.environ.get("KERNEL_LOCATION", "vmlinux.bin"),
        help="Path to the linux kernel.",
    )
    parser.add_argument(
        "--ifnet", metavar="IFNET", default=os.environ.get("IFNET", "eth0"),
        help="Network interface connected to internet.",
    )
    ifnet_ip = os.environ.get("IFNET_IP")
    parser.add_argument(
        "--ifnet-ip", type=_ipv4, metavar="IFNET_IP", default=ifnet_ip,
        required=ifnet_ip is None, help="IP of the network interface.",
    )
    return parser


def parse_cli_args(argv: Sequence[str] | None = None) -> CliConfiguration:
    """Parse options; environment variables fill in options not given."""
    namespace = _build_parser().parse_args(argv)
    return CliConfiguration(
        config_file=namespace.config_file,
        master_ip=namespace.master_ip,
        verbose=namespace.verbose,
        override_config=namespace.override_config,
        firecracker_path=namespace.firecracker_path,
        kernel_path=namespace.kernel_path,
        ifnet=namespace.ifnet,
        ifnet_ip=namespace.ifnet_ip,
    )


@dataclass
class FnConfiguration:
    """Settings used to run functions in micro VMs."""

    firecracker_location: Path
    kernel_location: Path
    ifnet: str
    ifnet_ip: IPv4Address

    @classmethod
    def from_cli(cls, opts: CliConfiguration) -> "FnConfiguration":
        return cls(
            firecracker_location=opts.firecracker_path,
            kernel_location=opts.kernel_path,
            ifnet=opts.ifnet,
            ifnet_ip=opts.ifnet_ip,
        )