"""Filesystem, hashing and random helpers shared by the node agent."""

from __future__ import annotations

import hashlib
import logging
import os
import random
import string
import tarfile
from pathlib import Path
from typing import Any, BinaryIO

logger = logging.getLogger(__name__)

_ALPHANUMERIC = string.ascii_letters + string.digits


def find_binary(binary: str) -> Path | None:
    """Return the first file named `binary` found on PATH, or None."""
    paths = os.environ.get("PATH")
    if not paths:
        return None
    for directory in paths.split(os.pathsep):
        candidate = Path(directory) / binary
        if candidate.is_file():
            return candidate
    return None


def generate_hash(value: Any) -> int:
    """Return a stable unsigned 64-bit hash of a value's representation."""
    digest = hashlib.blake2b(repr(value).encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big")


def unpack(archive: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Extract a .tar.gz archive into `dest`."""
    logger.debug("Unzipping archive %s into %s", archive, dest)
    with tarfile.open(archive, "r:gz") as tar:
        if hasattr(tarfile, "data_filter"):
            tar.extractall(dest, filter="data")
        else:
            tar.extractall(dest)


def create_file_with_parent_folders(path: str | os.PathLike[str]) -> BinaryIO:
    """Create (or truncate) a file for binary writing, creating its parents."""
    path = Path(path)
    logger.debug("Creating file %s.", path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = path.open("wb")
    logger.debug("File %s created.", path)
    return handle


def create_directory_if_not_exists(directory: str | os.PathLike[str] | None) -> None:
    """Create `directory` and its parents if given and missing."""
    if directory is None:
        return
    Path(directory).mkdir(parents=True, exist_ok=True)
    logger.debug("Directory %s created.", directory)


def get_random_hash(size: int) -> str:
    """Return `size` random alphanumeric characters."""
    return "".join(random.choices(_ALPHANUMERIC, k=size))