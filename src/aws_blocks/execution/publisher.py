"""Publication of one operation result as one workflow event."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any

from aws_blocks.config import Settings, load_settings
from aws_blocks.execution.results import Materialized, OperationResult, StreamBearing, classify_result

logger = logging.getLogger(__name__)

Emit = Callable[[dict[str, Any]], Any]


class ResponsePublisher:
    """Materializes a result if needed and hands it to ``emit`` exactly once.

    Empty results (``None`` or ``{}``) are emitted as ``{}``; a non-mapping
    payload is wrapped as ``{"result": payload}``.
    """

    def __init__(self, emit: Emit, settings: Settings | None = None) -> None:
        self._emit = emit
        self._settings = settings

    def prepare(self, result: OperationResult | Any) -> dict[str, Any]:
        """Build the event payload without emitting it.

        Raises:
            SerializationError: A stream could not be materialized.
        """
        if not isinstance(result, (Materialized, StreamBearing)):
            result = classify_result(result)
        if isinstance(result, StreamBearing):
            settings = self._settings or load_settings()
            result = result.materialize(settings.execution.max_stream_bytes)

        payload = result.payload
        if payload is None:
            return {}
        if isinstance(payload, Mapping):
            return dict(payload)
        return {"result": payload}

    def publish(self, result: OperationResult | Any) -> dict[str, Any]:
        payload = self.prepare(result)
        outcome = self._emit(payload)
        if inspect.isawaitable(outcome):
            if inspect.iscoroutine(outcome):
                outcome.close()
            raise TypeError("emit returned an awaitable; use publish_async")
        logger.debug("Emitted event with %d top-level keys", len(payload))
        return payload

    async def publish_async(self, result: OperationResult | Any) -> dict[str, Any]:
        payload = self.prepare(result)
        outcome = self._emit(payload)
        if inspect.isawaitable(outcome):
            await outcome
        logger.debug("Emitted event with %d top-level keys", len(payload))
        return payload
