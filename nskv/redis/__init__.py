"""
Redis Module

Namespaced keyspace access: dispatch, scanning, batching, documents, purging
and connection lifecycle.
"""

from . import ops, redis_handler
from .client import KeyspaceClient
from .redis_handler.dispatcher import CommandDispatcher
from .errors import BatchError, DecodeError, NskvError
from .redis_client import RedisClient

__all__ = [
    "BatchError",
    "CommandDispatcher",
    "DecodeError",
    "KeyspaceClient",
    "NskvError",
    "RedisClient",
    "ops",
    "redis_handler",
]
