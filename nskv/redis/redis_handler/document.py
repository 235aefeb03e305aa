"""
Path-addressed access to JSON documents (RedisJSON ``JSON.GET``/``JSON.SET``).

Reads distinguish a missing key (None) from a missing path (empty list),
optionally unwrap single matches, and can fall back to a producer that
either supplies the value or populates the document before one re-read.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from ..errors import DecodeError
from .dispatcher import CommandDispatcher
from .utils.commands import BatchTarget, ExecutionTarget
from .utils.serde import loads

logger = logging.getLogger("RedisDocument")

ROOT = "$"

Fallback = Callable[[str, str], Any]
ResultCallback = Callable[[Any], Any]


class GetOptions(BaseModel):
    """Result shaping for ``DocumentStore.get``."""

    keep_array: bool = False
    empty_array_null: bool = False
    rerun: bool = False


@dataclass(frozen=True)
class MirrorWrite:
    """
    Secondary write issued after a successful document set.

    ``params`` is either the query parameters or a producer called with the
    written data; ``writer`` is awaited as ``writer(query, params)``.
    """

    query: str
    params: Sequence[Any] | dict[str, Any] | Callable[[Any], Any]
    writer: Callable[[str, Any], Awaitable[Any]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def normalize_path(path: str | None) -> str:
    """Anchor a dot path under the document root."""
    if not path or path == ROOT:
        return ROOT
    if path.startswith(ROOT + ".") or path.startswith(ROOT + "["):
        return path
    return f"{ROOT}.{path}"


class DocumentStore:
    """JSON document reads and writes through a CommandDispatcher."""

    def __init__(self, dispatcher: CommandDispatcher):
        self.dispatcher = dispatcher

    async def get(
        self,
        key: str,
        path: str | None = None,
        callback: ResultCallback | None = None,
        fallback: Fallback | None = None,
        options: GetOptions | None = None,
    ) -> Any:
        """
        Read ``path`` from the document at ``key``.

        Returns None for a missing key, ``[]`` for a missing path. Raises
        DecodeError if the stored text is not JSON.
        """
        options = options or GetOptions()
        path = normalize_path(path)
        key = self.dispatcher.keys.namespace(key)

        raw = await self.dispatcher.dispatch("JSON.GET", key, path)
        result = self._shape(loads(raw), options)
        if result is not None and callback is not None:
            result = await _maybe_await(callback(result))

        if result is not None or fallback is None:
            return result

        logger.debug(f"JSON.GET miss for '{key}' at '{path}', calling fallback")
        produced = await _maybe_await(fallback(key, path))
        if not options.rerun:
            return produced

        return await self.get(
            key,
            path,
            callback,
            options=options.model_copy(update={"rerun": False}),
        )

    async def get_or_default(
        self,
        key: str,
        path: str | None,
        default: Any,
        callback: ResultCallback | None = None,
        fallback: Fallback | None = None,
        options: GetOptions | None = None,
    ) -> Any:
        """Like ``get`` but an undecodable document yields ``default``."""
        try:
            return await self.get(key, path, callback, fallback, options)
        except DecodeError as e:
            logger.warning(f"Using default for '{key}' at '{path}': {e}")
            return default

    async def set(
        self,
        key: str,
        path: str | None,
        data: Any,
        *args: Any,
        target: ExecutionTarget | None = None,
        mirror: MirrorWrite | None = None,
    ) -> Any:
        """
        Write ``data`` at ``path``; extra ``args`` (``NX``/``XX``) pass through.

        With ``mirror``, the secondary write runs once the set succeeded.
        """
        if mirror is not None and isinstance(target, BatchTarget):
            raise ValueError("A mirror write cannot be combined with a batch target")

        path = normalize_path(path)
        result = await self.dispatcher.dispatch(
            "JSON.SET", key, path, data, *args, target=target
        )

        if mirror is not None and result is not None:
            params = mirror.params(data) if callable(mirror.params) else mirror.params
            params = await _maybe_await(params)
            await mirror.writer(mirror.query, params)
        return result

    @staticmethod
    def _shape(result: Any, options: GetOptions) -> Any:
        if isinstance(result, list):
            if not result and options.empty_array_null:
                return None
            if len(result) == 1 and not options.keep_array:
                return result[0]
        return result
