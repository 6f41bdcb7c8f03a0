"""Tagged operation results.

A response either is already plain JSON data (``Materialized``) or still
holds open streams, lazy iterables or SDK scalar types such as datetimes
(``StreamBearing``) and must be converted before it can be emitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from aws_blocks.domain.operations import OperationDescriptor
from aws_blocks.utils.serialization import materialize, needs_materialization


@dataclass(frozen=True)
class Materialized:
    payload: Any


@dataclass(frozen=True)
class StreamBearing:
    handle: Any

    def materialize(self, max_stream_bytes: int) -> Materialized:
        return Materialized(materialize(self.handle, max_stream_bytes=max_stream_bytes))


OperationResult = Union[Materialized, StreamBearing]


def classify_result(
    response: Any,
    descriptor: OperationDescriptor | None = None,
) -> OperationResult:
    """Tag a raw SDK response.

    Operations flagged ``stream_bearing`` always go through materialization;
    any other response is inspected for values JSON cannot encode.
    """
    if response is None:
        return Materialized(None)
    if descriptor is not None and descriptor.stream_bearing:
        return StreamBearing(response)
    if needs_materialization(response):
        return StreamBearing(response)
    return Materialized(response)
