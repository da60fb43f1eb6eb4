"""Pulling images and unpacking them into runtime bundles."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rik.image import Image
from rik.skopeo import Skopeo, SkopeoConfiguration
from rik.umoci import Umoci, UmociConfiguration, UnpackArgs

logger = logging.getLogger(__name__)


@dataclass
class ImageManagerConfiguration:
    """Settings of the bundle manager and of the image puller."""

    oci_manager: UmociConfiguration
    image_puller: SkopeoConfiguration

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageManagerConfiguration":
        if not isinstance(data, Mapping):
            raise ValueError("ImageManagerConfiguration: expected an object")
        for key in ("oci_manager", "image_puller"):
            if key not in data:
                raise ValueError(f"ImageManagerConfiguration: missing field `{key}`")
        return cls(
            oci_manager=UmociConfiguration.from_dict(data["oci_manager"]),
            image_puller=SkopeoConfiguration.from_dict(data["image_puller"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "oci_manager": self.oci_manager.to_dict(),
            "image_puller": self.image_puller.to_dict(),
        }


class ImageManager:
    """Pulls images with skopeo and unpacks them with umoci."""

    def __init__(self, config: ImageManagerConfiguration) -> None:
        self.config = config
        self.umoci = Umoci(config.oci_manager)
        self.skopeo = Skopeo(config.image_puller)
        logger.debug("ImageManager initialized.")

    def format_image_src(self, image: str) -> str:
        """The skopeo source of a registry image."""
        return f"docker://{image}"

    def pull(self, image_str: str) -> Image:
        """Make the image available locally and return it with its bundle set."""
        logger.debug("Pulling image %s", image_str)
        bundle_directory = self.config.oci_manager.bundles_directory
        if bundle_directory is None:
            raise ValueError("no bundles directory configured")
        image = Image.parse(image_str)

        if not image.should_be_pulled(bundle_directory):
            logger.info(
                "Using local image for %s due to IfNotPresent image policy", image.oci
            )
            image.bundle = Path(f"{bundle_directory}/{image.get_uuid()}")
            return image

        logger.info("Pulling image %s", image_str)
        image_path = self.skopeo.copy(
            self.format_image_src(image.oci), image.get_hashed_oci(), None
        )
        logger.debug("%s copied into %s", image_str, image_path)

        bundle = self.umoci.unpack(
            image.get_uuid(),
            UnpackArgs(image=Path(f"{image_path}:{image.tag}")),
        )
        image.bundle = Path(bundle)
        logger.info("Successfully pulled image %s", image_str)
        return image