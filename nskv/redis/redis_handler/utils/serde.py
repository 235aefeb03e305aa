from __future__ import annotations

import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ...errors import DecodeError

logger = logging.getLogger("RedisSerde")


def _default_handler(obj: Any) -> Any:
    """Handle non-JSON-native values during document serialization"""
    if isinstance(obj, datetime | date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, set | frozenset | tuple):
        return list(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def dumps(obj: Any) -> str:
    """Serialize a Python value to the JSON text stored in a document"""
    if isinstance(obj, BaseModel):
        obj = obj.model_dump(mode="json")
    return json.dumps(obj, ensure_ascii=False, default=_default_handler)


def loads(raw: Any) -> Any:
    """
    Deserialize a document reply.

    Text is JSON-decoded; numbers, booleans and None pass through untouched.
    Undecodable text raises DecodeError.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON decode failed at pos {e.pos}: {e.msg}")
        raise DecodeError(raw, e.msg) from e
