"""Container image references."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rik.utils import generate_hash

logger = logging.getLogger(__name__)


class ImagePullPolicy(Enum):
    """When an image has to be pulled."""

    IF_NOT_PRESENT = "IfNotPresent"
    ALWAYS = "Always"


@dataclass
class Image:
    """An image reference of the form name:tag and the bundle it unpacks to."""

    oci: str
    name: str
    tag: str
    bundle: Path | None = None
    pull_policy: ImagePullPolicy = ImagePullPolicy.IF_NOT_PRESENT

    @classmethod
    def parse(cls, reference: str) -> "Image":
        """Split `name:tag`; raises ValueError when there is no tag."""
        logger.debug("Creating image from %s", reference)
        parts = reference.split(":")
        if len(parts) < 2:
            raise ValueError(f"image reference {reference!r} has no tag")
        return cls(oci=reference, name=parts[0], tag=parts[1])

    def should_be_pulled(self, directory: str | os.PathLike[str]) -> bool:
        """Whether the image must be pulled into `directory` under its policy."""
        if self.pull_policy is ImagePullPolicy.ALWAYS:
            return True
        return not (Path(directory) / self.get_uuid()).exists()

    def get_uuid(self) -> str:
        return f"{self.name}-{self.get_hash()}"

    def get_hash(self) -> int:
        """A stable hash of every field of the image."""
        return generate_hash(
            (
                self.oci,
                self.name,
                self.tag,
                None if self.bundle is None else str(self.bundle),
                self.pull_policy.value,
            )
        )

    def get_hashed_oci(self) -> str:
        return f"{self.name}-{self.get_hash()}:{self.tag}"