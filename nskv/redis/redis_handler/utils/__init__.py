"""
Redis Handler Utils

Key namespacing, command descriptors and JSON serialization shared by the
keyspace components.
"""

from .commands import (
    BatchMode,
    BatchReply,
    BatchTarget,
    Command,
    DirectTarget,
    ExecutionTarget,
)
from .key_factory import KeyFactory
from .serde import dumps, loads

__all__ = [
    "BatchMode",
    "BatchReply",
    "BatchTarget",
    "Command",
    "DirectTarget",
    "ExecutionTarget",
    "KeyFactory",
    "dumps",
    "loads",
]
