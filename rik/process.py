"""Errors and helpers shared by the wrappers around external container tools."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Base class of errors raised while driving an external tool."""


class ToolNotFoundError(ToolError):
    """The tool's binary could not be located."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"Unable to locate the {tool} binary")


class ProcessSpawnError(ToolError):
    """The process could not be started."""

    def __init__(self, source: BaseException) -> None:
        self.source = source
        super().__init__(f"An error occured during the following spawn process: {source}")


class ToolTimeoutError(ToolError):
    """The tool did not finish in time."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"{tool.capitalize()} command timeout deadline has elapsed")


class ToolFailedError(ToolError):
    """The tool exited unsuccessfully."""

    def __init__(self, tool: str, stdout: str, stderr: str) -> None:
        self.tool = tool
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f'{tool.capitalize()} command failed, stdout: "{stdout}", stderr: "{stderr}"'
        )


class ToolCommandError(ToolError):
    """Waiting for the tool's output failed."""

    def __init__(self, tool: str, source: BaseException) -> None:
        self.tool = tool
        self.source = source
        super().__init__(f"{tool.capitalize()} command error: {source}")


class InvalidPathError(ToolError):
    """A path could not be resolved."""

    def __init__(self, source: BaseException) -> None:
        self.source = source
        super().__init__(f"Invalid path: {source}")


class JsonDeserializationError(ToolError):
    """A tool's JSON output could not be decoded."""

    def __init__(self, source: BaseException) -> None:
        self.source = source
        super().__init__(f"Json deserialization error: {source}")


class UnixSocketOpenError(ToolError):
    """A unix socket could not be bound."""

    def __init__(self, source: BaseException) -> None:
        self.source = source
        super().__init__(f"Unable to bind to unix socket: {source}")


@dataclass(frozen=True)
class ToolResult:
    """Output and exit status of a finished tool run."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0


def canonical_path(path: str | os.PathLike[str]) -> Path:
    """The absolute path with symlinks resolved; the path must exist."""
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError) as error:
        raise InvalidPathError(error) from error


def run_tool(
    tool: str,
    command: str | os.PathLike[str],
    args: Sequence[str],
    timeout: float | None,
) -> ToolResult:
    """Run `command` with `args`, no stdin, and collect its output within `timeout` seconds."""
    argv = [os.fspath(command), *args]
    try:
        process = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as error:
        raise ProcessSpawnError(error) from error

    logger.debug("%s", " ".join(argv))

    try:
        out, err = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired as error:
        process.kill()
        process.communicate()
        raise ToolTimeoutError(tool) from error
    except OSError as error:
        process.kill()
        process.wait()
        raise ToolCommandError(tool, error) from error

    stdout = out.decode("utf-8", errors="replace")
    stderr = err.decode("utf-8", errors="replace")
    if stderr:
        logger.error("%s error : %s", tool.capitalize(), stderr)
    return ToolResult(stdout=stdout, stderr=stderr, returncode=process.returncode)