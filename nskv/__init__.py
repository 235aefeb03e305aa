"""
nskv - namespaced access layer over a shared Redis keyspace.

Transparent key prefixing (cluster-tag aware), non-blocking scans,
pipelined/transactional batches, JSON document paths and bulk purging.
"""

from .core.config.settings import settings
from .redis import (
    BatchError,
    CommandDispatcher,
    DecodeError,
    KeyspaceClient,
    NskvError,
    RedisClient,
)
from .redis.redis_handler import BatchMode, Command, GetOptions, ScanOptions

__version__ = settings.version

__all__ = [
    "BatchError",
    "BatchMode",
    "Command",
    "CommandDispatcher",
    "DecodeError",
    "GetOptions",
    "KeyspaceClient",
    "NskvError",
    "RedisClient",
    "ScanOptions",
]
