# nskv/redis/ops.py

import logging
from collections.abc import Callable, Sequence
from typing import Any

from .redis_handler.dispatcher import CommandDispatcher

logger = logging.getLogger("RedisCollectionOps")


def _to_number(value: Any) -> int | float | None:
    if value is None:
        return None
    if isinstance(value, int | float):
        return value
    try:
        number = float(value)
    except ValueError:
        return float("nan")
    return int(number) if number.is_integer() and "." not in str(value) else number


# =========================================================================
# SECTION: Hash Operations
# =========================================================================
async def hmget_map(
    dispatcher: CommandDispatcher,
    key: str,
    fields: Sequence[str],
    *,
    to_num: bool = False,
    transform: Callable[[Any], Any] | None = None,
) -> dict[str, Any]:
    """
    Gets several hash fields as a field -> value mapping.

    Args:
        dispatcher: Dispatcher bound to the keyspace.
        key: The logical hash key (namespaced on dispatch).
        fields: Field names to fetch.
        to_num: Convert values to numbers (missing fields stay None,
            non-numeric values become NaN).
        transform: Applied to every value; takes precedence over ``to_num``.

    Returns:
        A dict with one entry per requested field.
    """
    if not fields:
        return {}
    values = await dispatcher.dispatch("hmget", key, *fields)
    values = list(values or [None] * len(fields))
    out: dict[str, Any] = {}
    for field, value in zip(fields, values, strict=False):
        if transform is not None:
            out[field] = transform(value)
        elif to_num:
            out[field] = _to_number(value)
        else:
            out[field] = value
    return out


# =========================================================================
# SECTION: Key Operations
# =========================================================================
async def rename(dispatcher: CommandDispatcher, source: str, destination: str) -> Any:
    """
    Renames a key; both names are namespaced.

    Returns:
        The store reply ("OK"). Store errors (e.g. missing source) propagate.
    """
    return await dispatcher.dispatch(
        "rename", source, dispatcher.keys.namespace(destination)
    )


# =========================================================================
# SECTION: Sorted Set Operations
# =========================================================================
async def members_in_zset(
    dispatcher: CommandDispatcher, key: str, members: Sequence[str]
) -> list[str]:
    """
    Filters ``members`` down to those present in the sorted set at ``key``.

    Returns:
        Members that have a score, in input order; [] if the key is missing.
    """
    if not members:
        return []
    scores = await dispatcher.dispatch("zmscore", key, *members)
    if not scores:
        return []
    return [
        member
        for member, score in zip(members, scores, strict=False)
        if score is not None
    ]


async def zset_to_set_scan(
    dispatcher: CommandDispatcher, source_key: str, target_key: str
) -> int:
    """
    Copies every member of a sorted set into a set, in ZSCAN chunks.

    ZSCAN never blocks the store for long, at the cost of being slow on big
    sets. Scores are not copied.

    Returns:
        Number of members read from the source.
    """
    cursor = 0
    copied = 0
    while True:
        reply = await dispatcher.dispatch("zscan", source_key, cursor)
        cursor, chunk = int(reply[0]), reply[1]
        if isinstance(chunk, dict):
            members = list(chunk)
        elif chunk and isinstance(chunk[0], list | tuple):
            members = [pair[0] for pair in chunk]
        else:
            members = list(chunk)[::2]
        if members:
            await dispatcher.dispatch("sadd", target_key, *members)
            copied += len(members)
        if cursor == 0:
            break
    logger.debug(f"Copied {copied} members from '{source_key}' to '{target_key}'")
    return copied


async def zset_convert(
    dispatcher: CommandDispatcher,
    source_key: str,
    target_key: str,
    *,
    command: str = "sadd",
    limit: int = 1000,
    with_scores: bool = False,
) -> int:
    """
    Copies a sorted set into a set (``sadd``) or list (``lpush``) in ZRANGE windows.

    Args:
        dispatcher: Dispatcher bound to the keyspace.
        source_key: Sorted set to read.
        target_key: Set or list to write.
        command: "lpush" for a list; anything else means "sadd".
        limit: Window size; each ZRANGE reads ``limit + 1`` members.
        with_scores: Store ``"member,score"`` strings instead of bare members.

    Returns:
        Number of items written.
    """
    if command != "lpush":
        command = "sadd"
    if not limit or limit < 1:
        limit = 1000

    start = 0
    written = 0
    while True:
        end = start + limit
        params: list[Any] = [start, end]
        if with_scores:
            params.append("WITHSCORES")
        chunk = await dispatcher.dispatch("zrange", source_key, *params)
        if not chunk:
            break
        if with_scores:
            if isinstance(chunk[0], list | tuple):
                items = [f"{m},{s}" for m, s in chunk]
            else:
                items = [f"{chunk[i]},{chunk[i + 1]}" for i in range(0, len(chunk), 2)]
        else:
            items = list(chunk)
        await dispatcher.dispatch(command, target_key, *items)
        written += len(items)
        start = end + 1
    return written


"""
Collection helpers on top of the keyspace dispatcher.

```python
from nskv.redis import ops

values = await ops.hmget_map(client.dispatcher, "stats", ["hits", "misses"], to_num=True)
await ops.rename(client.dispatcher, "draft:1", "doc:1")
present = await ops.members_in_zset(client.dispatcher, "queue", ["a", "b"])
await ops.zset_convert(client.dispatcher, "queue", "queue:list", command="lpush")
```
Every key goes through the dispatcher, so the namespace prefix is applied
exactly once. Store errors propagate to the caller.
"""
