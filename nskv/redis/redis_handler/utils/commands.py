"""
Command descriptors and execution targets.

A command is always issued against an explicit target: either the live
connection (executes now) or a pending batch (queued until the batch runs).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, TypeAlias


class BatchMode(str, Enum):
    """How a batch is sent to the store."""

    PIPELINE = "pipeline"  # non-atomic, one round trip
    TRANSACTION = "transaction"  # MULTI/EXEC, all or nothing


class Command(NamedTuple):
    """A single store command: ``(method, key, *args)``."""

    method: str
    key: str | None = None
    args: tuple[Any, ...] = ()

    @classmethod
    def of(cls, method: str, key: str | None = None, *args: Any) -> Command:
        return cls(method, key, tuple(args))

    @classmethod
    def coerce(cls, command: Command | Sequence[Any]) -> Command:
        """Accept either a Command or a plain ``(method, key, *args)`` sequence."""
        if isinstance(command, Command):
            return command
        if isinstance(command, str) or not command:
            raise TypeError(
                f"Command must be a non-empty (method, key, *args) sequence, got {command!r}"
            )
        method, *rest = command
        key = rest[0] if rest else None
        return cls(method, key, tuple(rest[1:]))


class BatchReply(NamedTuple):
    """Outcome of one queued command: exactly one of the slots is meaningful."""

    error: Exception | None
    result: Any

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DirectTarget:
    """Execute on the live connection and return the reply."""

    connection: Any


@dataclass(frozen=True)
class BatchTarget:
    """Queue into a pending pipeline; the reply arrives when the batch executes."""

    pipeline: Any
    mode: BatchMode = BatchMode.PIPELINE


ExecutionTarget: TypeAlias = DirectTarget | BatchTarget
