"""
Command dispatch for the namespaced keyspace.

Every command goes through ``CommandDispatcher.dispatch``: the key is
namespaced, dot-qualified module commands (``JSON.GET`` ...) are routed raw
with their values JSON-encoded, and the command is either executed on the live
connection or queued into a pending batch depending on the target.
"""

from __future__ import annotations

import logging
from typing import Any

from .utils.commands import BatchTarget, DirectTarget, ExecutionTarget
from .utils.key_factory import KeyFactory
from .utils.serde import dumps

logger = logging.getLogger("RedisDispatcher")

MODULE_SEPARATOR = "."

# JSON commands whose third positional argument is a JSON value
JSON_VALUE_COMMANDS = frozenset(
    {
        "JSON.SET",
        "JSON.MERGE",
        "JSON.ARRAPPEND",
        "JSON.ARRINSERT",
        "JSON.ARRINDEX",
        "JSON.NUMINCRBY",
        "JSON.NUMMULTBY",
    }
)
# ... and the subset for which None is a legitimate value (encoded as null)
JSON_NULLABLE_COMMANDS = frozenset({"JSON.SET", "JSON.ARRINSERT", "JSON.ARRAPPEND"})


def is_module_command(method: str) -> bool:
    return MODULE_SEPARATOR in method


class CommandDispatcher:
    """
    Routes commands to the live connection or into a pending batch.

    Args:
        connection: A ``redis.asyncio`` client (single node or cluster) with
            ``decode_responses=True``.
        keys: The namespacer applied to every key this dispatcher touches.
    """

    def __init__(self, connection: Any, keys: KeyFactory | None = None):
        self.connection = connection
        self.keys = keys or KeyFactory()

    @property
    def direct(self) -> DirectTarget:
        return DirectTarget(self.connection)

    def resolve_target(self, target: ExecutionTarget | None) -> ExecutionTarget:
        """An absent target means direct execution on the live connection."""
        return self.direct if target is None else target

    async def dispatch(
        self,
        method: str,
        key: str | None,
        *args: Any,
        target: ExecutionTarget | None = None,
    ) -> Any:
        """
        Issue ``method`` on the namespaced ``key``.

        Returns the store reply for direct execution, ``None`` when queued
        into a batch.
        """
        if key is None:
            return await self.execute(method.upper(), *args, target=target)

        key = self.keys.namespace(key)
        if is_module_command(method):
            return await self.route_module(method, key, *args, target=target)

        args = self.keys.namespace_args(method, key, args)
        return await self.execute(method.upper(), key, *args, target=target)

    async def route_module(
        self, method: str, *args: Any, target: ExecutionTarget | None = None
    ) -> Any:
        """
        Dispatch a dot-qualified module command with raw positional arguments.

        ``args`` starts with the (already namespaced) key. For JSON value
        commands the value at position 3 is JSON-encoded; ``JSON.ARRINSERT``
        takes ``(key, path, value, index)`` and is sent as
        ``(key, path, index, value)``.
        """
        command = method.upper()
        wire_args = list(args)

        if command in JSON_VALUE_COMMANDS and len(wire_args) >= 3:
            last = len(wire_args) if command == "JSON.ARRAPPEND" else 3
            for i in range(2, last):
                if wire_args[i] is not None or command in JSON_NULLABLE_COMMANDS:
                    wire_args[i] = dumps(wire_args[i])

        if command == "JSON.ARRINSERT" and len(wire_args) >= 4:
            wire_args[2], wire_args[3] = wire_args[3], wire_args[2]

        return await self.execute(command, *wire_args, target=target)

    async def execute(
        self, command: str, *args: Any, target: ExecutionTarget | None = None
    ) -> Any:
        """Send ``command`` with ``args`` untouched to the resolved target."""
        resolved = self.resolve_target(target)
        if isinstance(resolved, BatchTarget):
            resolved.pipeline.execute_command(command, *args)
            return None
        return await resolved.connection.execute_command(command, *args)
