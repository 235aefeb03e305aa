"""
Redis Handler Module for nskv

Keyspace components with clean separation of concerns: scanning, batching,
JSON documents and bulk purging.
"""

from .batch import BatchExecutor
from .dispatcher import CommandDispatcher
from .document import DocumentStore, GetOptions, MirrorWrite, normalize_path
from .purger import Purger
from .scanner import ScanOptions, ScanResult, Scanner

# Utils
from .utils import BatchMode, BatchReply, Command, KeyFactory, dumps, loads

__all__ = [
    # Infrastructure
    "BatchMode",
    "BatchReply",
    "Command",
    "KeyFactory",
    "dumps",
    "loads",
    # Components
    "BatchExecutor",
    "CommandDispatcher",
    "DocumentStore",
    "GetOptions",
    "MirrorWrite",
    "Purger",
    "ScanOptions",
    "ScanResult",
    "Scanner",
    "normalize_path",
]
