"""JSON encoding of arbitrary values stored as string span attributes."""

from collections.abc import Sequence
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from enum import Enum
from json import JSONEncoder
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class EventSerializer(JSONEncoder):
    def default(self, obj: Any):
        if isinstance(obj, datetime):
            # Naive datetimes are treated as UTC
            if obj.tzinfo is None:
                obj = obj.replace(tzinfo=timezone.utc)
            return obj.isoformat()

        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)):
            return [self.default(item) for item in obj]
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, bytes):
            return obj.decode("utf-8")
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        if isinstance(obj, (set, frozenset)):
            return [self.default(item) for item in obj]

        # Standard JSON-encodable types
        if isinstance(obj, (dict, list, str, int, float, type(None))):
            return obj

        if hasattr(obj, "__slots__"):
            return self.default(
                {slot: getattr(obj, slot, None) for slot in obj.__slots__}
            )
        elif hasattr(obj, "__dict__"):
            return self.default(vars(obj))
        else:
            return JSONEncoder.default(self, obj)
