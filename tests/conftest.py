"""
Pytest configuration and common fixtures for nskv tests.

Provides an in-memory FakeRedis speaking raw command replies (as
``execute_command`` would before redis-py response callbacks), so the
keyspace components are exercised end to end without a server.
"""

from __future__ import annotations

import fnmatch
import json
import os
from typing import Any

import pytest
from redis.exceptions import ResponseError

os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("ENVIRONMENT", "PROD")

from nskv.redis.client import KeyspaceClient  # noqa: E402

WRONGTYPE = "WRONGTYPE Operation against a key holding the wrong kind of value"


class _ZSet(dict):
    """member -> score"""


class _JsonDoc:
    def __init__(self, value: Any):
        self.value = value


def _fmt_score(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else repr(float(score))


def _json_lookup(doc: Any, path: str) -> tuple[bool, Any, Any, Any]:
    """Resolve a ``$``/``$.a.b`` path: (found, value, parent, last_segment)."""
    if path == "$":
        return True, doc, None, None
    parent, node, segment = None, doc, None
    for segment in path[2:].split("."):
        if not isinstance(node, dict) or segment not in node:
            return False, None, node, segment
        parent, node = node, node[segment]
    return True, node, parent, segment


class FakeRedis:
    """In-memory Redis mock driven through ``execute_command``."""

    def __init__(self):
        self._store: dict[str, Any] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.pipelines: list[FakeRedisPipeline] = []

    # ---- plumbing ---------------------------------------------------------
    async def execute_command(self, *args: Any, **options: Any) -> Any:
        """Run one command and return its raw reply."""
        self.calls.append(args)
        name, *params = args
        handler = getattr(self, "_cmd_" + name.lower().replace(".", "_"), None)
        if handler is None:
            raise ResponseError(f"ERR unknown command '{name}'")
        return handler(*params)

    def pipeline(self, transaction: bool = True) -> FakeRedisPipeline:
        """Create a pipeline context."""
        pipe = FakeRedisPipeline(self, transaction=transaction)
        self.pipelines.append(pipe)
        return pipe

    async def ping(self) -> bool:
        return True

    def commands_named(self, name: str) -> list[tuple[Any, ...]]:
        """Recorded calls of one command (test helper)."""
        return [c for c in self.calls if c[0] == name.upper()]

    def _typed(self, key: str, kind: type, create: bool = False) -> Any:
        value = self._store.get(key)
        if value is None:
            if not create:
                return None
            value = self._store[key] = kind()
        if type(value) is not kind:
            raise ResponseError(WRONGTYPE)
        return value

    def _drop_if_empty(self, key: str) -> None:
        value = self._store.get(key)
        if isinstance(value, dict | set) and not value:
            del self._store[key]

    # ---- direct seeding helpers -------------------------------------------
    def seed(self, key: str, value: Any) -> None:
        """Store a value directly: str, dict (hash), set, _ZSet or JSON via seed_json."""
        self._store[key] = value

    def seed_zset(self, key: str, mapping: dict[str, float]) -> None:
        self._store[key] = _ZSet(mapping)

    def seed_json(self, key: str, value: Any) -> None:
        self._store[key] = _JsonDoc(value)

    def keys(self) -> list[str]:
        return sorted(self._store)

    def raw(self, key: str) -> Any:
        value = self._store.get(key)
        return value.value if isinstance(value, _JsonDoc) else value

    # ---- generic ----------------------------------------------------------
    def _cmd_ping(self) -> str:
        return "PONG"

    def _cmd_del(self, *keys: str) -> int:
        return sum(1 for k in keys if self._store.pop(k, None) is not None)

    def _cmd_exists(self, *keys: str) -> int:
        return sum(1 for k in keys if k in self._store)

    def _cmd_rename(self, source: str, destination: str) -> str:
        if source not in self._store:
            raise ResponseError("ERR no such key")
        self._store[destination] = self._store.pop(source)
        return "OK"

    def _cmd_scan(self, cursor: Any, *params: Any) -> list[Any]:
        return self._scan_window(self.keys(), int(cursor), *params, pairs=None)

    def _scan_window(
        self, names: list[str], cursor: int, *params: Any, pairs: dict | None
    ) -> list[Any]:
        match, count = None, 10
        for i in range(0, len(params), 2):
            if str(params[i]).upper() == "MATCH":
                match = params[i + 1]
            elif str(params[i]).upper() == "COUNT":
                count = int(params[i + 1])
        window = names[cursor : cursor + count]
        next_cursor = cursor + count if cursor + count < len(names) else 0
        items: list[Any] = []
        for name in window:
            if match is not None and not fnmatch.fnmatchcase(name, match):
                continue
            items.append(name)
            if pairs is not None:
                items.append(pairs[name])
        return [str(next_cursor), items]

    # ---- strings ----------------------------------------------------------
    def _cmd_set(self, key: str, value: Any) -> str:
        self._store[key] = str(value)
        return "OK"

    def _cmd_get(self, key: str) -> str | None:
        return self._typed(key, str)

    # ---- hashes -----------------------------------------------------------
    def _cmd_hset(self, key: str, *pairs: Any) -> int:
        h = self._typed(key, dict, create=True)
        added = 0
        for i in range(0, len(pairs), 2):
            added += pairs[i] not in h
            h[pairs[i]] = str(pairs[i + 1])
        return added

    def _cmd_hget(self, key: str, field: str) -> str | None:
        return (self._typed(key, dict) or {}).get(field)

    def _cmd_hmget(self, key: str, *fields: str) -> list[str | None]:
        h = self._typed(key, dict) or {}
        return [h.get(f) for f in fields]

    def _cmd_hdel(self, key: str, *fields: str) -> int:
        h = self._typed(key, dict)
        if not h:
            return 0
        removed = sum(1 for f in fields if h.pop(f, None) is not None)
        self._drop_if_empty(key)
        return removed

    def _cmd_hscan(self, key: str, cursor: Any, *params: Any) -> list[Any]:
        h = self._typed(key, dict) or {}
        return self._scan_window(sorted(h), int(cursor), *params, pairs=h)

    # ---- sets -------------------------------------------------------------
    def _cmd_sadd(self, key: str, *members: Any) -> int:
        s = self._typed(key, set, create=True)
        before = len(s)
        s.update(str(m) for m in members)
        return len(s) - before

    def _cmd_smembers(self, key: str) -> list[str]:
        return sorted(self._typed(key, set) or set())

    def _cmd_spop(self, key: str, count: Any = None) -> Any:
        s = self._typed(key, set)
        if count is None:
            if not s:
                return None
            member = sorted(s)[0]
            s.discard(member)
            self._drop_if_empty(key)
            return member
        if not s:
            return []
        popped = sorted(s)[: int(count)]
        s.difference_update(popped)
        self._drop_if_empty(key)
        return popped

    # ---- sorted sets ------------------------------------------------------
    def _ordered(self, z: _ZSet) -> list[tuple[str, float]]:
        return sorted(z.items(), key=lambda item: (item[1], item[0]))

    def _cmd_zadd(self, key: str, *pairs: Any) -> int:
        z = self._typed(key, _ZSet, create=True)
        added = 0
        for i in range(0, len(pairs), 2):
            added += pairs[i + 1] not in z
            z[str(pairs[i + 1])] = float(pairs[i])
        return added

    def _cmd_zpopmin(self, key: str, count: Any = 1) -> list[str]:
        z = self._typed(key, _ZSet)
        if not z:
            return []
        out: list[str] = []
        for member, score in self._ordered(z)[: int(count)]:
            del z[member]
            out += [member, _fmt_score(score)]
        self._drop_if_empty(key)
        return out

    def _cmd_zmscore(self, key: str, *members: str) -> list[str | None] | None:
        z = self._typed(key, _ZSet)
        if z is None:
            return [None] * len(members)
        return [_fmt_score(z[m]) if m in z else None for m in members]

    def _cmd_zrange(self, key: str, start: Any, stop: Any, *flags: str) -> list[str]:
        z = self._typed(key, _ZSet) or _ZSet()
        ordered = self._ordered(z)
        stop = int(stop)
        window = ordered[int(start) : (None if stop == -1 else stop + 1)]
        if any(f.upper() == "WITHSCORES" for f in flags):
            return [part for m, s in window for part in (m, _fmt_score(s))]
        return [m for m, _ in window]

    def _cmd_zscan(self, key: str, cursor: Any, *params: Any) -> list[Any]:
        z = self._typed(key, _ZSet) or _ZSet()
        scores = {m: _fmt_score(s) for m, s in z.items()}
        return self._scan_window(sorted(z), int(cursor), *params, pairs=scores)

    def _cmd_zunionstore(self, destination: str, numkeys: Any, *keys: str) -> int:
        merged = _ZSet()
        for k in keys[: int(numkeys)]:
            for member, score in (self._typed(k, _ZSet) or {}).items():
                merged[member] = merged.get(member, 0.0) + score
        self._store[destination] = merged
        return len(merged)

    # ---- lists ------------------------------------------------------------
    def _cmd_lpush(self, key: str, *values: Any) -> int:
        lst = self._typed(key, list, create=True)
        for v in values:
            lst.insert(0, str(v))
        return len(lst)

    def _cmd_lrange(self, key: str, start: Any, stop: Any) -> list[str]:
        lst = self._typed(key, list) or []
        stop = int(stop)
        return lst[int(start) : (None if stop == -1 else stop + 1)]

    # ---- JSON -------------------------------------------------------------
    def _cmd_json_get(self, key: str, path: str = "$") -> str | None:
        doc = self._typed(key, _JsonDoc)
        if doc is None:
            return None
        found, value, _, _ = _json_lookup(doc.value, path)
        return json.dumps([value] if found else [])

    def _cmd_json_set(self, key: str, path: str, value: str, *flags: str) -> str | None:
        doc = self._typed(key, _JsonDoc)
        decoded = json.loads(value)
        flags = tuple(f.upper() for f in flags)
        if "NX" in flags and doc is not None and path == "$":
            return None
        if "XX" in flags and doc is None:
            return None
        if path == "$":
            self._store[key] = _JsonDoc(decoded)
            return "OK"
        if doc is None:
            raise ResponseError("ERR new objects must be created at the root")
        _, _, parent, segment = _json_lookup(doc.value, path)
        if not isinstance(parent, dict):
            return None
        parent[segment] = decoded
        return "OK"

    def _cmd_json_arrappend(self, key: str, path: str, *values: str) -> list[int | None]:
        doc = self._typed(key, _JsonDoc)
        if doc is None:
            raise ResponseError("ERR could not perform this operation on a key that doesn't exist")
        found, arr, _, _ = _json_lookup(doc.value, path)
        if not found or not isinstance(arr, list):
            return [None]
        arr.extend(json.loads(v) for v in values)
        return [len(arr)]

    def _cmd_json_arrinsert(
        self, key: str, path: str, index: Any, *values: str
    ) -> list[int | None]:
        doc = self._typed(key, _JsonDoc)
        if doc is None:
            raise ResponseError("ERR could not perform this operation on a key that doesn't exist")
        found, arr, _, _ = _json_lookup(doc.value, path)
        if not found or not isinstance(arr, list):
            return [None]
        position = int(index)
        for offset, v in enumerate(values):
            arr.insert(position + offset, json.loads(v))
        return [len(arr)]


class FakeRedisPipeline:
    """Redis pipeline mock: queues raw commands, executes them in order."""

    def __init__(self, fake_redis: FakeRedis, transaction: bool = True):
        self.fake_redis = fake_redis
        self.transaction = transaction
        self.commands: list[tuple[Any, ...]] = []
        self.executed = False

    def execute_command(self, *args: Any, **options: Any) -> FakeRedisPipeline:
        """Queue a command."""
        self.commands.append(args)
        return self

    async def execute(self, raise_on_error: bool = True) -> list[Any]:
        """Execute all queued commands; errors are returned in place."""
        results: list[Any] = []
        for args in self.commands:
            try:
                results.append(await self.fake_redis.execute_command(*args))
            except ResponseError as e:
                results.append(e)
        self.executed = True
        if raise_on_error:
            for r in results:
                if isinstance(r, Exception):
                    raise r
        return results

    async def __aenter__(self) -> FakeRedisPipeline:
        return self

    async def __aexit__(self, *args) -> None:
        return None


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Provide a fake Redis instance."""
    return FakeRedis()


@pytest.fixture
def keyspace(fake_redis: FakeRedis) -> KeyspaceClient:
    """KeyspaceClient over FakeRedis with the ``app:`` prefix."""
    return KeyspaceClient(fake_redis, prefix="app:")


@pytest.fixture
def bare_keyspace(fake_redis: FakeRedis) -> KeyspaceClient:
    """KeyspaceClient over FakeRedis without a prefix."""
    return KeyspaceClient(fake_redis)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("REDIS_CONNECTION", "redis://localhost:6379/15")
    monkeypatch.setenv("REDIS_HPREFIX", "test:")
    monkeypatch.delenv("REDIS_CLUSTER", raising=False)
