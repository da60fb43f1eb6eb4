"""Management of iptables rules through the iptables command."""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from rik.utils import find_binary

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]

_NOT_SUPPORTED = "Not supported on this platform"


class IptablesError(Exception):
    """Base class of iptables errors."""


class LoadFailedError(IptablesError):
    """iptables could not be loaded or a command failed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Could not load iptables: {reason}")


class InvalidRuleError(IptablesError):
    """iptables could not check the rule."""

    def __init__(self, rule: "Rule") -> None:
        self.rule = rule
        super().__init__(f"Chain or table in rule '{rule}' could not be found")


class InvalidTableError(IptablesError):
    """The table name is not one iptables knows."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Given table '{table}' is not valid")


class InvalidComboError(IptablesError):
    """The table and chain could not be checked together."""

    def __init__(self, table: "Table", chain: "Chain") -> None:
        self.table = table
        self.chain = chain
        super().__init__(f"Given combo table '{table}' and chain '{chain}' is not valid")


class AlreadyExistError(IptablesError):
    """The rule is already present."""

    def __init__(self, rule: "Rule") -> None:
        self.rule = rule
        super().__init__(f"Rule '{rule}' already exists")


class AlreadyDeletedError(IptablesError):
    """The rule is not present."""

    def __init__(self, rule: "Rule") -> None:
        self.rule = rule
        super().__init__(f"Rule '{rule}' does not exist")


@dataclass(frozen=True)
class Chain:
    """An iptables chain: one of the built-in chains or a custom one."""

    name: str

    INPUT: ClassVar["Chain"]
    OUTPUT: ClassVar["Chain"]
    FORWARD: ClassVar["Chain"]
    POST_ROUTING: ClassVar["Chain"]
    PRE_ROUTING: ClassVar["Chain"]

    @classmethod
    def parse(cls, value: str) -> "Chain":
        """Any name is a valid chain; unknown names are custom chains."""
        return cls(value)

    @property
    def is_custom(self) -> bool:
        return self.name not in _BUILTIN_CHAINS

    def __str__(self) -> str:
        return self.name


_BUILTIN_CHAINS = frozenset({"INPUT", "OUTPUT", "FORWARD", "POSTROUTING", "PREROUTING"})

Chain.INPUT = Chain("INPUT")
Chain.OUTPUT = Chain("OUTPUT")
Chain.FORWARD = Chain("FORWARD")
Chain.POST_ROUTING = Chain("POSTROUTING")
Chain.PRE_ROUTING = Chain("PREROUTING")


class Table(StrEnum):
    """The iptables tables."""

    FILTER = "filter"
    NAT = "nat"
    MANGLE = "mangle"
    RAW = "raw"

    @classmethod
    def parse(cls, value: str) -> "Table":
        try:
            return cls(value)
        except ValueError:
            raise InvalidTableError(value) from None


@dataclass(frozen=True)
class Rule:
    """A rule specification placed in a chain of a table; it is not validated here."""

    chain: Chain
    table: Table
    rule: str

    def __str__(self) -> str:
        return f"{self.table}({self.chain}): {self.rule}"


def _system_runner(binary: str) -> Runner:
    def run(args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            [binary, *args],
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            check=False,
        )

    return run


class Iptables:
    """Creates, deletes and checks rules; with cleanup, removes its rules on close."""

    def __init__(self, cleanup: bool = False, *, runner: Runner | None = None) -> None:
        if not sys.platform.startswith("linux"):
            raise LoadFailedError(_NOT_SUPPORTED)
        if runner is None:
            binary = find_binary("iptables")
            if binary is None:
                raise LoadFailedError("unable to locate the iptables binary")
            runner = _system_runner(str(binary))
        try:
            result = runner(["--version"])
        except OSError as error:
            raise LoadFailedError(str(error)) from error
        if result.returncode != 0:
            raise LoadFailedError(result.stderr.strip() or "iptables --version failed")
        self._run = runner
        self.cleanup = cleanup
        self._rules: list[Rule] = []

    @property
    def rules(self) -> tuple[Rule, ...]:
        """Rules created through this object and not deleted since."""
        return tuple(self._rules)

    def _validate_combo(self, table: Table, chain: Chain) -> None:
        try:
            self._run(["-t", str(table), "-L", str(chain)])
        except OSError as error:
            raise InvalidComboError(table, chain) from error

    def _rule_args(self, flag: str, rule: Rule) -> list[str]:
        try:
            spec = shlex.split(rule.rule)
        except ValueError as error:
            raise InvalidRuleError(rule) from error
        return ["-t", str(rule.table), flag, str(rule.chain), *spec]

    def exists(self, rule: Rule) -> bool:
        """Whether the rule is present."""
        self._validate_combo(rule.table, rule.chain)
        args = self._rule_args("-C", rule)
        try:
            result = self._run(args)
        except OSError as error:
            raise InvalidRuleError(rule) from error
        return result.returncode == 0

    def create(self, rule: Rule) -> None:
        """Append the rule; raises AlreadyExistError if it is present."""
        self._validate_combo(rule.table, rule.chain)
        if self.exists(rule):
            raise AlreadyExistError(rule)
        self._mutate("-A", rule)
        self._rules.append(rule)

    def delete(self, rule: Rule) -> None:
        """Delete the rule; raises AlreadyDeletedError if it is absent."""
        self._validate_combo(rule.table, rule.chain)
        if not self.exists(rule):
            raise AlreadyDeletedError(rule)
        self._mutate("-D", rule)
        self._rules = [kept for kept in self._rules if kept != rule]

    def _mutate(self, flag: str, rule: Rule) -> None:
        try:
            result = self._run(self._rule_args(flag, rule))
        except OSError as error:
            raise LoadFailedError(str(error)) from error
        if result.returncode != 0:
            raise LoadFailedError(result.stderr.strip() or f"iptables {flag} failed")

    def close(self) -> None:
        """With cleanup enabled, delete every rule created through this object."""
        if not self.cleanup:
            return
        for rule in list(self._rules):
            try:
                self.delete(rule)
            except IptablesError as error:
                logger.error("Could not delete rule '%r', reason: %s", rule, error)

    def __enter__(self) -> "Iptables":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()