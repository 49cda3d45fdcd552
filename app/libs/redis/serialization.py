"""
JSON serialization for cached values.

Cached values are embeddings (lists of floats) and ranked result sets
(lists of pydantic models dumped to dicts), so the serializer accepts any
JSON-compatible value and knows how to flatten the handful of richer types
that show up in them.
"""

import datetime
import enum
import json
import uuid
from decimal import Decimal
from typing import Any, Union

import numpy as np
from pydantic import BaseModel

from app.libs.redis.errors import RedisSerializationError


class RedisSerializer:
    """Encode values to JSON text for Redis and decode them back."""

    @staticmethod
    def serialize(data: Any) -> str:
        """
        Serialize a value to a JSON string.

        Raises:
            RedisSerializationError: If the value cannot be encoded
        """
        try:
            return json.dumps(data, default=RedisSerializer._default_serializer)
        except (TypeError, ValueError) as e:
            raise RedisSerializationError(f"Failed to serialize data: {str(e)}")

    @staticmethod
    def deserialize(data: Union[str, bytes]) -> Any:
        """
        Deserialize a JSON string (or UTF-8 bytes) read from Redis.

        Raises:
            RedisSerializationError: If the payload is not valid JSON
        """
        try:
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            return json.loads(data)
        except (UnicodeDecodeError, TypeError, ValueError) as e:
            raise RedisSerializationError(f"Failed to deserialize data: {str(e)}")

    @staticmethod
    def _default_serializer(obj: Any) -> Any:
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")

        if isinstance(obj, np.ndarray):
            return obj.tolist()

        if isinstance(obj, np.generic):
            return obj.item()

        if isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()

        if isinstance(obj, enum.Enum):
            return obj.value

        if isinstance(obj, uuid.UUID):
            return str(obj)

        if isinstance(obj, Decimal):
            return float(obj)

        if isinstance(obj, (set, frozenset, tuple)):
            return list(obj)

        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")

        raise TypeError(f"Type {type(obj).__name__} not serializable")
