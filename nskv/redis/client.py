"""
KeyspaceClient: one object wiring the namespacer, dispatcher, scanner, batch
executor, document store and purger around a single store connection.

Construct it once at process start and pass it to whatever needs the store.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ..core.config.settings import settings
from . import ops
from .redis_handler.dispatcher import CommandDispatcher
from .redis_client import RedisClient
from .redis_handler.batch import BatchExecutor, CommandLike
from .redis_handler.document import DocumentStore, Fallback, GetOptions, MirrorWrite
from .redis_handler.purger import Purger
from .redis_handler.scanner import ScanCallback, ScanOptions, ScanResult, Scanner
from .redis_handler.utils.commands import BatchMode, BatchReply, ExecutionTarget
from .redis_handler.utils.key_factory import KeyFactory


class KeyspaceClient:
    """
    Namespaced access to a shared store.

    Args:
        connection: An open ``redis.asyncio`` client (``decode_responses=True``).
        prefix: Namespace prefix applied to every key.
        redis_client: Bootstrap helper owning ``connection``; closed by ``close()``.
    """

    def __init__(
        self,
        connection: Any,
        prefix: str = "",
        *,
        redis_client: RedisClient | None = None,
    ):
        self.redis_client = redis_client
        self.keys = KeyFactory(prefix=prefix)
        self.dispatcher = CommandDispatcher(connection, self.keys)
        self.scanner = Scanner(self.dispatcher)
        self.batches = BatchExecutor(self.dispatcher)
        self.documents = DocumentStore(self.dispatcher)
        self.purger = Purger(self.dispatcher, self.scanner, self.batches)

    @classmethod
    def from_settings(
        cls,
        url: str | None = None,
        *,
        prefix: str | None = None,
        cluster: bool | None = None,
    ) -> KeyspaceClient:
        """Open a connection from explicit arguments, falling back to settings."""
        redis_client = RedisClient(url, cluster=cluster)
        return cls(
            redis_client.connect(),
            settings.redis_hprefix if prefix is None else prefix,
            redis_client=redis_client,
        )

    @property
    def prefix(self) -> str:
        return self.keys.prefix

    @property
    def connection(self) -> Any:
        return self.dispatcher.connection

    async def close(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.close()

    async def __aenter__(self) -> KeyspaceClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ---------- core ---------------------------------------------------------

    def namespace(self, key: str) -> str:
        return self.keys.namespace(key)

    async def dispatch(
        self,
        method: str,
        key: str | None,
        *args: Any,
        target: ExecutionTarget | None = None,
    ) -> Any:
        return await self.dispatcher.dispatch(method, key, *args, target=target)

    async def scan(
        self,
        pattern: str | None = None,
        callback: ScanCallback | None = None,
        hash_key: str | None = None,
        options: ScanOptions | None = None,
    ) -> list[Any] | tuple[int, list[Any]]:
        return await self.scanner.scan(pattern, callback, hash_key, options)

    async def scan_result(
        self,
        pattern: str | None = None,
        callback: ScanCallback | None = None,
        hash_key: str | None = None,
        options: ScanOptions | None = None,
    ) -> ScanResult:
        return await self.scanner.run(pattern, callback, hash_key, options)

    async def execute_batch(
        self,
        commands: Sequence[CommandLike],
        mode: BatchMode = BatchMode.PIPELINE,
    ) -> list[BatchReply]:
        return await self.batches.execute(commands, mode)

    async def execute_batch_values(
        self,
        commands: Sequence[CommandLike],
        mode: BatchMode = BatchMode.PIPELINE,
        *,
        ignore_errors: bool = False,
    ) -> list[Any]:
        return await self.batches.execute_values(
            commands, mode, ignore_errors=ignore_errors
        )

    async def jget(
        self,
        key: str,
        path: str | None = None,
        callback: Callable[[Any], Any] | None = None,
        fallback: Fallback | None = None,
        options: GetOptions | None = None,
    ) -> Any:
        return await self.documents.get(key, path, callback, fallback, options)

    async def jget_or_default(
        self,
        key: str,
        path: str | None,
        default: Any,
        callback: Callable[[Any], Any] | None = None,
        fallback: Fallback | None = None,
        options: GetOptions | None = None,
    ) -> Any:
        return await self.documents.get_or_default(
            key, path, default, callback, fallback, options
        )

    async def jset(
        self,
        key: str,
        path: str | None,
        data: Any,
        *args: Any,
        target: ExecutionTarget | None = None,
        mirror: MirrorWrite | None = None,
    ) -> Any:
        return await self.documents.set(
            key, path, data, *args, target=target, mirror=mirror
        )

    async def purge(self, names: str | Sequence[str]) -> bool:
        return await self.purger.purge(names)

    async def drain(
        self,
        collection_key: str,
        is_sorted: bool = False,
        rename_pattern: str | None = None,
    ) -> int:
        return await self.purger.drain(collection_key, is_sorted, rename_pattern)

    # ---------- collection helpers -------------------------------------------

    async def hmget_map(
        self,
        key: str,
        fields: Sequence[str],
        *,
        to_num: bool = False,
        transform: Callable[[Any], Any] | None = None,
    ) -> dict[str, Any]:
        return await ops.hmget_map(
            self.dispatcher, key, fields, to_num=to_num, transform=transform
        )

    async def rename(self, source: str, destination: str) -> Any:
        return await ops.rename(self.dispatcher, source, destination)

    async def members_in_zset(self, key: str, members: Sequence[str]) -> list[str]:
        return await ops.members_in_zset(self.dispatcher, key, members)

    async def zset_to_set_scan(self, source_key: str, target_key: str) -> int:
        return await ops.zset_to_set_scan(self.dispatcher, source_key, target_key)

    async def zset_convert(
        self,
        source_key: str,
        target_key: str,
        *,
        command: str = "sadd",
        limit: int = 1000,
        with_scores: bool = False,
    ) -> int:
        return await ops.zset_convert(
            self.dispatcher,
            source_key,
            target_key,
            command=command,
            limit=limit,
            with_scores=with_scores,
        )
