"""
Cursor-based enumeration of keys (SCAN) or hash fields (HSCAN).

The store is walked in bounded rounds so large keyspaces never block it.
Each round's items are either handed to a callback (one group at a time, or
the whole round at once) or accumulated for the caller.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .dispatcher import CommandDispatcher

logger = logging.getLogger("RedisScanner")

ScanCallback = Callable[..., Any]


class ScanOptions(BaseModel):
    """Knobs for one scan run."""

    model_config = ConfigDict(populate_by_name=True)

    return_items: bool = Field(default=False, alias="return")
    return_cursor: bool = False
    one: bool = False
    cursor: int = Field(default=0, ge=0)
    cb_all: bool = False
    count: int | None = Field(default=None, gt=0)


class ScanResult(BaseModel):
    """
    Outcome of a scan run.

    ``completed`` is only True when the store itself returned cursor 0.
    ``malformed`` marks a run that stopped on an unparsable reply; ``cursor``
    is then the last good cursor, usable to resume.
    """

    cursor: int = 0
    items: list[Any] = Field(default_factory=list)
    rounds: int = 0
    completed: bool = False
    malformed: bool = False


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def parse_scan_reply(reply: Any) -> tuple[int, list[Any]] | None:
    """
    Normalize a SCAN/HSCAN reply to ``(next_cursor, flat_items)``.

    Hash replies parsed into a dict by redis-py are flattened back to
    alternating field/value. Returns None for anything unusable.
    """
    if not isinstance(reply, list | tuple) or len(reply) < 2:
        return None
    try:
        cursor = int(reply[0])
    except (TypeError, ValueError):
        return None
    if cursor < 0:
        return None

    items = reply[1]
    if isinstance(items, dict):
        items = [part for pair in items.items() for part in pair]
    elif not isinstance(items, list | tuple):
        return None
    return cursor, list(items)


class Scanner:
    """Drives SCAN/HSCAN rounds through a CommandDispatcher."""

    def __init__(self, dispatcher: CommandDispatcher):
        self.dispatcher = dispatcher

    async def scan(
        self,
        pattern: str | None = None,
        callback: ScanCallback | None = None,
        hash_key: str | None = None,
        options: ScanOptions | None = None,
    ) -> list[Any] | tuple[int, list[Any]]:
        """
        Scan and return the accumulated items, or ``(cursor, items)`` when
        ``options.return_cursor`` is set.

        Items are only accumulated with ``return_items`` and no callback.
        """
        options = options or ScanOptions()
        result = await self.run(pattern, callback, hash_key, options)
        if options.return_cursor:
            return result.cursor, result.items
        return result.items

    async def run(
        self,
        pattern: str | None = None,
        callback: ScanCallback | None = None,
        hash_key: str | None = None,
        options: ScanOptions | None = None,
    ) -> ScanResult:
        """Scan and return the full ScanResult."""
        options = options or ScanOptions()
        keys = self.dispatcher.keys

        if hash_key:
            command = "HSCAN"
            lead: list[Any] = [keys.namespace(hash_key)]
            group_size = 2
        else:
            command = "SCAN"
            lead = []
            group_size = 1
            if pattern:
                pattern = keys.namespace(pattern)

        tail: list[Any] = []
        if pattern:
            tail += ["MATCH", pattern]
        if options.count:
            tail += ["COUNT", options.count]

        result = ScanResult(cursor=options.cursor)
        logger.debug(
            f"{command} start: key={lead[0] if lead else '-'} pattern={pattern!r} "
            f"cursor={result.cursor} count={options.count}"
        )

        while True:
            reply = await self.dispatcher.execute(
                command, *lead, result.cursor, *tail
            )
            parsed = parse_scan_reply(reply)
            if parsed is None:
                result.malformed = True
                logger.warning(
                    f"{command} returned an unusable reply after {result.rounds} rounds; "
                    f"stopping at cursor {result.cursor}: {reply!r}"
                )
                break

            next_cursor, batch = parsed
            result.rounds += 1

            if batch:
                if callback is not None:
                    await self._consume(callback, batch, group_size, options.cb_all)
                elif options.return_items:
                    result.items.extend(batch)

            result.cursor = next_cursor
            if next_cursor == 0:
                result.completed = True
                break
            if options.one and batch:
                break

        logger.debug(
            f"{command} done: rounds={result.rounds} cursor={result.cursor} "
            f"completed={result.completed} items={len(result.items)}"
        )
        return result

    @staticmethod
    async def _consume(
        callback: ScanCallback, batch: list[Any], group_size: int, cb_all: bool
    ) -> None:
        if cb_all:
            await _maybe_await(callback(batch))
            return
        # groups are taken from the end of the round
        while batch:
            group = batch[-group_size:]
            del batch[-group_size:]
            await _maybe_await(callback(*group))
