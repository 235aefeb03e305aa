"""
Exceptions raised by the keyspace layer itself.

Store failures (``redis.exceptions.RedisError``) are never wrapped: they reach
the caller of the originating call unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .redis_handler.utils.commands import BatchReply


class NskvError(Exception):
    """Base exception for keyspace-layer errors."""

    pass


class DecodeError(NskvError, ValueError):
    """Raised when a stored document cannot be decoded as JSON."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        preview = raw if len(raw) <= 80 else raw[:77] + "..."
        super().__init__(f"Could not decode JSON document ({reason}): {preview!r}")


class BatchError(NskvError):
    """Raised when flattening batch replies would hide failed commands."""

    def __init__(self, replies: list[BatchReply]):
        self.replies = replies
        self.failed = [i for i, reply in enumerate(replies) if reply.error is not None]
        first = replies[self.failed[0]].error if self.failed else None
        super().__init__(
            f"{len(self.failed)} of {len(replies)} batched commands failed "
            f"(first at position {self.failed[0] if self.failed else '-'}: {first})"
        )
