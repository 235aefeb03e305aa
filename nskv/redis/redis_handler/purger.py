"""
Bulk deletion built on scanning and batching.

``purge`` deletes by literal key, hash field or wildcard pattern;
``drain`` destructively pops a (sorted) set of key names and deletes the keys
they name, chunk by chunk.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from .batch import BatchExecutor
from .dispatcher import CommandDispatcher
from .scanner import Scanner, ScanOptions
from .utils.commands import Command

logger = logging.getLogger("RedisPurger")

WILDCARD = "*"
FIELD_SEPARATOR = "."
PATTERN_SCAN_COUNT = 1000
DRAIN_CHUNK_SIZE = 500


def deletion_for_name(name: str, separator: str = FIELD_SEPARATOR) -> Command:
    """``key`` deletes the key, ``key.field[.field...]`` deletes hash fields."""
    parts = name.split(separator)
    if len(parts) == 1:
        return Command.of("del", parts[0])
    return Command.of("hdel", *parts)


def popped_members(reply: Any, is_sorted: bool) -> list[Any]:
    """Members of a SPOP/ZPOPMIN reply; sorted-set scores are dropped."""
    if not reply:
        return []
    if isinstance(reply, str | bytes):
        return [reply]
    items = list(reply)
    if not is_sorted:
        return items
    if isinstance(items[0], list | tuple):
        return [pair[0] for pair in items]
    return items[::2]


class Purger:
    """Deletes keys by name or pattern, and drains key-name collections."""

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        scanner: Scanner,
        batches: BatchExecutor,
        *,
        field_separator: str = FIELD_SEPARATOR,
    ):
        self.dispatcher = dispatcher
        self.scanner = scanner
        self.batches = batches
        self.field_separator = field_separator

    async def purge(self, names: str | Sequence[str]) -> bool:
        """
        Delete every name (key, hash field or wildcard pattern) in one batch.

        Raises BatchError if any batched deletion failed.
        """
        if isinstance(names, str):
            names = [names]

        commands: list[Command] = []

        def collect(keys: list[str]) -> None:
            commands.extend(Command.of("del", key) for key in keys)

        for name in names:
            if not name:
                continue
            if WILDCARD not in name:
                commands.append(deletion_for_name(name, self.field_separator))
                continue
            await self.scanner.run(
                name,
                collect,
                options=ScanOptions(cb_all=True, count=PATTERN_SCAN_COUNT),
            )

        if commands:
            logger.info(f"Purging {len(commands)} keys/fields")
            await self.batches.execute_values(commands)
        return True

    async def drain(
        self,
        collection_key: str,
        is_sorted: bool = False,
        rename_pattern: str | None = None,
    ) -> int:
        """
        Pop members of ``collection_key`` in chunks and delete the keys they name.

        With ``rename_pattern`` each member replaces the pattern's ``*`` to
        form the key to delete. Returns the number of members drained; a chunk
        with a failed deletion raises BatchError and stops the drain.
        """
        command = "zpopmin" if is_sorted else "spop"
        drained = 0
        while True:
            reply = await self.dispatcher.dispatch(
                command, collection_key, DRAIN_CHUNK_SIZE
            )
            members = popped_members(reply, is_sorted)
            if not members:
                break

            await self.batches.execute_values(
                [
                    Command.of(
                        "del",
                        rename_pattern.replace(WILDCARD, str(member), 1)
                        if rename_pattern
                        else member,
                    )
                    for member in members
                ]
            )
            drained += len(members)

        logger.info(f"Drained {drained} members from '{collection_key}'")
        return drained
