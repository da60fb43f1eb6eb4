"""Resource metrics of a node."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

import psutil

logger = logging.getLogger(__name__)


@dataclass
class CpuMetrics:
    """Number of CPUs and the percentage of CPU left free."""

    total: int
    free: float


@dataclass
class MemoryMetrics:
    """Total and free memory in bytes."""

    total: int
    free: int


@dataclass
class DiskMetrics:
    """Total and free space of one disk in bytes."""

    disk_name: str
    total: int
    free: int


@dataclass
class Metrics:
    """A snapshot of a node's CPU, memory and disks."""

    cpu: CpuMetrics
    memory: MemoryMetrics
    disks: list[DiskMetrics] = field(default_factory=list)

    @classmethod
    def from_system(cls) -> "Metrics":
        """Measure the current host."""
        usages = psutil.cpu_percent(percpu=True) or []
        cpu_amount = len(usages) or (psutil.cpu_count() or 0)
        average = sum(usages) / len(usages) if usages else 0.0

        memory = psutil.virtual_memory()

        disks = []
        for partition in psutil.disk_partitions():
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except OSError:
                continue
            disks.append(
                DiskMetrics(
                    disk_name=partition.device or "unknown",
                    total=usage.total,
                    free=usage.free,
                )
            )

        return cls(
            cpu=CpuMetrics(total=cpu_amount, free=100.0 - average),
            memory=MemoryMetrics(total=memory.total, free=memory.total - memory.used),
            disks=disks,
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str) -> "Metrics":
        """Parse metrics; raises ValueError on malformed input."""
        data: Any = json.loads(text)
        try:
            return cls(
                cpu=CpuMetrics(total=data["cpu"]["total"], free=data["cpu"]["free"]),
                memory=MemoryMetrics(total=data["memory"]["total"], free=data["memory"]["free"]),
                disks=[
                    DiskMetrics(disk_name=d["disk_name"], total=d["total"], free=d["free"])
                    for d in data["disks"]
                ],
            )
        except (KeyError, TypeError) as error:
            raise ValueError(f"invalid metrics document: {error}") from error

    def log(self) -> None:
        logger.info("Metrics: %r", self)


class MetricsManager:
    """Takes successive measurements of the host."""

    def __init__(self) -> None:
        # The first CPU sample only sets a baseline for the next one.
        psutil.cpu_percent(percpu=True)

    def fetch(self) -> Metrics:
        """Measure the host now."""
        return Metrics.from_system()