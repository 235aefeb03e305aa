# nskv/redis/redis_client.py

"""
Redis connection helper that is **fork-safe** and asyncio-native.

Why so elaborate?
-----------------
• Gunicorn / Uvicorn workers often `fork()` after import time.
  Re-using a parent-process connection in the child silently breaks
  replies and can leak file descriptors.

• Each worker therefore opens its *own* connection (or pool) lazily.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from redis.asyncio import ConnectionPool, Redis
from redis.asyncio.cluster import RedisCluster

from ..core.config.settings import settings

log = logging.getLogger("RedisClient")


class RedisClient:
    """
    Owns one store connection: a single node behind a pool, or a cluster.

    Args:
        url: Connection URL; defaults to ``REDIS_CONNECTION``.
        cluster: Cluster mode; defaults to ``REDIS_CLUSTER``.
        max_connections: Pool size for single-node connections.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        cluster: bool | None = None,
        max_connections: int | None = None,
    ):
        self.url = url or settings.redis_connection
        self.cluster = settings.redis_cluster if cluster is None else cluster
        self.max_connections = max_connections or settings.redis_max_connections
        self._client: Any = None
        self._pool: ConnectionPool | None = None
        self._pid: int | None = None
        self._owned = True

    @classmethod
    def from_client(cls, client: Any) -> RedisClient:
        """Wrap an already-open client; it is never closed by this helper."""
        instance = cls.__new__(cls)
        instance.url = None
        instance.cluster = isinstance(client, RedisCluster)
        instance.max_connections = settings.redis_max_connections
        instance._client = client
        instance._pool = None
        instance._pid = os.getpid()
        instance._owned = False
        return instance

    # ---------- life-cycle --------------------------------------------------

    def connect(self) -> Any:
        """Return the live connection, opening it in this process if needed."""
        pid = os.getpid()
        if self._client is not None and (self._pid == pid or not self._owned):
            return self._client

        if self._client is not None:
            # process forked – discard the inherited connection
            log.debug(f"PID changed {self._pid} -> {pid}, reopening Redis connection")
            self._client = None
            self._pool = None

        if not self.url:
            raise RuntimeError(
                "No Redis connection configured: pass a URL or set REDIS_CONNECTION"
            )

        if self.cluster:
            log.info(f"Opening Redis cluster connection in PID {pid}")
            self._client = RedisCluster.from_url(
                self.url, decode_responses=True, encoding="utf-8"
            )
        else:
            log.info(f"Initialising Redis pool in PID {pid}")
            self._pool = ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                encoding="utf-8",
                max_connections=self.max_connections,
            )
            self._client = Redis(connection_pool=self._pool)
        self._pid = pid
        return self._client

    async def ping(self) -> bool:
        """Cheap health check against the live connection."""
        client = self.connect()
        try:
            return bool(await client.ping())
        except Exception as exc:
            log.error(f"Redis ping failed: {exc}", exc_info=True)
            raise

    async def close(self) -> None:
        """Close the connection if this helper opened it in this process."""
        if self._client is None or not self._owned:
            return
        if self._pid != os.getpid():
            log.debug("No Redis connection to close for PID %s", os.getpid())
            return

        log.info("Closing Redis connection in PID %s", self._pid)
        if self._pool is not None:
            await self._pool.disconnect()
        else:
            await self._client.aclose()
        self._client = None
        self._pool = None
        self._pid = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._pid == os.getpid()


"""
# RedisClient 🔌

```python
from nskv.redis.redis_client import RedisClient

# From settings (REDIS_CONNECTION / REDIS_CLUSTER)
redis_client = RedisClient()

# Explicit
redis_client = RedisClient("redis://localhost:6379/0")
cluster_client = RedisClient("redis://node-1:7000", cluster=True)

connection = redis_client.connect()
await connection.set("key", "value")
await redis_client.close()
```
"""
