"""Turning SDK responses into plain, emit-safe data."""

from __future__ import annotations

import base64
import datetime
import decimal
from collections.abc import Mapping
from itertools import islice

from aws_blocks.errors import SerializationError

_MAX_SERIALIZE_BYTES = 10 * 1024 * 1024  # 10 MB
_MAX_ITERABLE_ITEMS = 10_000
_MAX_SCAN_DEPTH = 32

_SCALARS = (str, bool, int, float)


def json_default(obj: object) -> object:
    """JSON serializer for already-materialized SDK values."""
    if isinstance(obj, (datetime.date, datetime.datetime)):
        return obj.isoformat()
    if isinstance(obj, decimal.Decimal):
        return _decimal_value(obj)
    if isinstance(obj, (bytes, bytearray)):
        return _bytes_text(bytes(obj))
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if is_stream(obj):
        raise TypeError("Streams must be materialized before JSON encoding")
    return str(obj)


def is_stream(obj: object) -> bool:
    read = getattr(obj, "read", None)
    return callable(read) and not isinstance(obj, (str, bytes, bytearray, Mapping))


def needs_materialization(value: object) -> bool:
    """True when ``value`` is not plain JSON data.

    Streams, lazy iterables, shared or circular references, and SDK scalar
    types (datetimes, ``Decimal``, bytes, sets) all need :func:`materialize`.
    """
    return _needs_materialization(value, 0, set())


def _needs_materialization(value: object, depth: int, seen: set[int]) -> bool:
    if value is None or isinstance(value, _SCALARS):
        return False
    if depth > _MAX_SCAN_DEPTH:
        return True
    if id(value) in seen:
        return True
    if isinstance(value, Mapping):
        seen.add(id(value))
        return any(_needs_materialization(item, depth + 1, seen) for item in value.values())
    if isinstance(value, (list, tuple)):
        seen.add(id(value))
        return any(_needs_materialization(item, depth + 1, seen) for item in value)
    return True


def materialize(value: object, max_stream_bytes: int = _MAX_SERIALIZE_BYTES) -> object:
    """Return a JSON-serializable copy of ``value``.

    Streams are drained, event streams and other lazy iterables are expanded
    (bounded), SDK scalar types are converted, and any reference back into a
    container already on the current path is dropped.

    Raises:
        SerializationError: A stream failed to read or exceeded
            ``max_stream_bytes``.
    """
    return _materialize(value, max_stream_bytes, "$", set())


def _materialize(value: object, max_bytes: int, path: str, active: set[int]) -> object:
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, decimal.Decimal):
        return _decimal_value(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return _bytes_text(bytes(value))
    if is_stream(value):
        return _drain_stream(value, max_bytes, path)

    if isinstance(value, Mapping):
        active.add(id(value))
        try:
            return {
                str(key): _materialize(item, max_bytes, f"{path}.{key}", active)
                for key, item in value.items()
                if id(item) not in active
            }
        finally:
            active.discard(id(value))

    if isinstance(value, (list, tuple, set, frozenset)):
        items: object = value
    elif hasattr(value, "__iter__"):
        try:
            items = list(islice(value, _MAX_ITERABLE_ITEMS))  # type: ignore[call-overload]
        except TypeError:
            return str(value)
        except Exception as exc:
            raise SerializationError(
                f"Failed to read event stream at {path}: {exc}",
                code="stream_read_failed",
                path=path,
            ) from exc
    else:
        return str(value)

    active.add(id(value))
    try:
        return [
            _materialize(item, max_bytes, f"{path}[{index}]", active)
            for index, item in enumerate(items)  # type: ignore[arg-type]
            if id(item) not in active
        ]
    finally:
        active.discard(id(value))


def _drain_stream(stream: object, max_bytes: int, path: str) -> str:
    try:
        content = stream.read(max_bytes + 1)  # type: ignore[attr-defined]
    except Exception as exc:
        raise SerializationError(
            f"Failed to read stream at {path}: {exc}",
            code="stream_read_failed",
            path=path,
        ) from exc
    finally:
        close = getattr(stream, "close", None)
        if callable(close):
            close()

    if content is None:
        return ""
    if isinstance(content, str):
        content = content.encode("utf-8")
    if len(content) > max_bytes:
        raise SerializationError(
            f"Stream at {path} exceeds {max_bytes} bytes",
            code="stream_too_large",
            path=path,
        )
    return _bytes_text(bytes(content))


def _bytes_text(content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return base64.b64encode(content).decode("utf-8")


def _decimal_value(obj: decimal.Decimal) -> object:
    # int when integral, float when lossless, otherwise the exact string.
    if obj == obj.to_integral_value():
        return int(obj)
    f = float(obj)
    if decimal.Decimal(str(f)) != obj:
        return str(obj)
    return f
