"""
nskv CLI main module.

Operational commands against a namespaced keyspace: scan, purge, drain and
JSON document reads.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from redis.exceptions import RedisError

from nskv.core.config.settings import settings
from nskv.core.logging import get_logger, set_log_context, setup_app_logging
from nskv.core.logging.context import get_context_info
from nskv.redis.client import KeyspaceClient
from nskv.redis.errors import NskvError
from nskv.redis.redis_handler.document import GetOptions
from nskv.redis.redis_handler.scanner import ScanOptions
from nskv.redis.redis_handler.utils.key_factory import KeyFactory

app = typer.Typer(help="nskv namespaced keyspace CLI")

_state: dict[str, Any] = {"url": None, "prefix": None, "cluster": None}


def _current_prefix() -> str:
    return settings.redis_hprefix if _state["prefix"] is None else _state["prefix"]


def _strip_prefix(keys: list[str]) -> list[str]:
    factory = KeyFactory(prefix=_current_prefix())
    return [factory.strip(key) for key in keys]


@app.callback()
def main(
    url: str = typer.Option(
        None, "--url", "-u", help="Connection URL (default: REDIS_CONNECTION)"
    ),
    prefix: str = typer.Option(
        None, "--prefix", "-p", help="Key prefix (default: REDIS_HPREFIX)"
    ),
    cluster: bool = typer.Option(
        False, "--cluster", help="Force cluster mode (default: REDIS_CLUSTER)"
    ),
):
    """Operate on a namespaced Redis keyspace."""
    _state.update(url=url, prefix=prefix, cluster=cluster or None)
    setup_app_logging()


def _run(operation: str, work: Callable[[KeyspaceClient], Awaitable[Any]]) -> Any:
    """Open a client from CLI options/settings, run ``work`` and close it."""

    async def runner() -> Any:
        prefix = _current_prefix()
        set_log_context(namespace=prefix or None, operation=operation)
        client = KeyspaceClient.from_settings(
            _state["url"], prefix=prefix, cluster=_state["cluster"]
        )
        async with client:
            result = await work(client)
        get_logger(__name__).debug(f"finished {get_context_info()}")
        return result

    try:
        return asyncio.run(runner())
    except (NskvError, RedisError, RuntimeError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


@app.command()
def scan(
    pattern: str = typer.Argument(None, help="Key (or field) glob pattern"),
    hash_key: str = typer.Option(
        None, "--hash-key", "-k", help="Scan fields of this hash instead of keys"
    ),
    count: int = typer.Option(None, "--count", "-c", help="COUNT hint per round"),
    one: bool = typer.Option(False, "--one", help="Stop after the first non-empty round"),
    relative: bool = typer.Option(
        False, "--relative", "-r", help="Print keys without the namespace prefix"
    ),
):
    """
    List keys (or hash fields and values) matching a pattern.

    Examples:
        nskv scan "user:*"
        nskv --prefix app: scan "session:*" --count 500
        nskv scan --hash-key settings "feature_*"
    """
    options = ScanOptions(return_items=True, count=count, one=one)
    result = _run(
        "scan",
        lambda client: client.scan_result(pattern, hash_key=hash_key, options=options),
    )

    if hash_key:
        for i in range(0, len(result.items) - 1, 2):
            typer.echo(f"{result.items[i]}\t{result.items[i + 1]}")
    else:
        keys = _strip_prefix(result.items) if relative else result.items
        for key in keys:
            typer.echo(key)

    if result.malformed:
        typer.echo(
            f"⚠️  Scan stopped early on a malformed reply (cursor {result.cursor})",
            err=True,
        )
    elif not result.completed:
        typer.echo(f"↪ resume with cursor {result.cursor}", err=True)


@app.command()
def purge(
    names: list[str] = typer.Argument(
        ..., help="Keys, hash fields (key.field) or wildcard patterns"
    ),
):
    """
    Delete keys, hash fields or every key matching a pattern.

    Examples:
        nskv purge session:42
        nskv purge "profile:7.avatar" "cache:*"
    """
    _run("purge", lambda client: client.purge(names))
    typer.echo(f"🧹 Purged {len(names)} name(s)")


@app.command()
def drain(
    collection_key: str = typer.Argument(..., help="Set or sorted set of key names"),
    is_sorted: bool = typer.Option(False, "--sorted", "-s", help="Collection is a sorted set"),
    pattern: str = typer.Option(
        None, "--pattern", help="Key pattern; '*' is replaced by each member"
    ),
):
    """
    Pop every member of a collection and delete the key it names.

    Examples:
        nskv drain expired:sessions --pattern "session:*"
        nskv drain queue:done --sorted
    """
    drained = _run("drain", lambda client: client.drain(collection_key, is_sorted, pattern))
    typer.echo(f"🧹 Drained {drained} member(s) from {collection_key}")


@app.command()
def jget(
    key: str = typer.Argument(..., help="Document key"),
    path: str = typer.Argument("$", help="Document path (dot path or $)"),
    keep_array: bool = typer.Option(
        False, "--keep-array", help="Do not unwrap single-element results"
    ),
):
    """
    Print a JSON document (or a path inside it).

    Examples:
        nskv jget profile:7
        nskv jget profile:7 address.city
    """
    options = GetOptions(keep_array=keep_array)
    value = _run("jget", lambda client: client.jget(key, path, options=options))
    typer.echo(json.dumps(value, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    app()
