"""Status codes exchanged between the controller, the scheduler and the workers."""

from __future__ import annotations

from enum import IntEnum


class ResourceStatus(IntEnum):
    """Lifecycle state of a resource as carried on the wire."""

    UNKNOWN = 0
    PENDING = 1
    RUNNING = 2
    FAILED = 3
    TERMINATED = 4
    CREATING = 5
    DESTROYING = 6

    @classmethod
    def from_code(cls, code: int) -> "ResourceStatus":
        """Map a wire code to a status; unknown codes become UNKNOWN."""
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class WorkloadRequestKind(IntEnum):
    """Kind of request sent for a workload."""

    CREATE = 0
    DESTROY = 1

    @classmethod
    def from_code(cls, code: int) -> "WorkloadRequestKind":
        """Map a wire code to a request kind; anything but 1 means CREATE."""
        return cls.DESTROY if code == 1 else cls.CREATE