"""JSON serialization utilities."""

from __future__ import annotations

import base64
import dataclasses
import datetime
import decimal
import enum
from itertools import islice

_MAX_ITERABLE_ITEMS = 10_000


def json_default(obj: object) -> object:
    """JSON serializer for objects not serializable by default json code."""
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (datetime.date, datetime.datetime)):
        return obj.isoformat()
    if isinstance(obj, decimal.Decimal):
        # Preserve numeric type: convert to int if no decimal part, else float.
        # For very large values that would lose precision as float, use string.
        if obj == obj.to_integral_value():
            return int(obj)
        f = float(obj)
        if decimal.Decimal(str(f)) != obj:
            return str(obj)
        return f
    if isinstance(obj, bytes):
        try:
            return obj.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(obj).decode("utf-8")

    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)

    # Bounded via islice to prevent OOM on huge iterables (sets, generators).
    if hasattr(obj, "__iter__") and not isinstance(obj, (str, bytes, dict, list)):
        try:
            return list(islice(obj, _MAX_ITERABLE_ITEMS))
        except TypeError:
            pass

    return str(obj)
