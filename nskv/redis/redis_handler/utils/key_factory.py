from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger("RedisKeyFactory")

TAG_OPEN = "{"
TAG_CLOSE = "}"


def split_cluster_tag(key: str) -> tuple[str, str]:
    """Split a leading ``{tag}`` off ``key``; returns ``("", key)`` when untagged."""
    if not key.startswith(TAG_OPEN):
        return "", key
    end = key.find(TAG_CLOSE, 1)
    if end == -1:
        return "", key
    return key[: end + 1], key[end + 1 :]


def is_multi_key_command(method: str) -> bool:
    """DEL and the sorted-set *STORE family must keep every key on one slot."""
    name = method.lower()
    return name == "del" or (name.startswith("z") and "store" in name)


class KeyFactory(BaseModel):
    """Pure stateless helpers that place logical keys under one namespace prefix."""

    prefix: str = Field(default="")

    # ---- builders ---------------------------------------------------------
    def namespace(self, key: str) -> str:
        """
        Prefix ``key`` unless it already carries the prefix.

        A leading cluster tag is kept verbatim in front so slot hashing is
        unaffected; only the remainder is checked and prefixed.
        """
        tag, rest = split_cluster_tag(key)
        if self.prefix and not rest.startswith(self.prefix):
            rest = self.prefix + rest
        return tag + rest

    def namespace_args(self, method: str, key: str, args: tuple[Any, ...]) -> tuple:
        """Namespace the tagged key arguments of multi-key commands on a tagged primary key."""
        if not args or not key.startswith(TAG_OPEN) or not is_multi_key_command(method):
            return args
        return tuple(
            self.namespace(arg)
            if isinstance(arg, str) and arg.startswith(TAG_OPEN)
            else arg
            for arg in args
        )

    def strip(self, key: str) -> str:
        """Inverse of ``namespace`` for display purposes."""
        tag, rest = split_cluster_tag(key)
        if self.prefix and rest.startswith(self.prefix):
            rest = rest[len(self.prefix) :]
        return tag + rest
