"""Workflow-platform adapter: one block per catalog operation.

The platform hands each block the user's input mapping, the app-level
configuration (credentials and optional endpoint) and an ``emit`` callable.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from aws_blocks.app import AppContext, get_app_context
from aws_blocks.domain.invocation import AppConfig, InvocationConfig
from aws_blocks.domain.operations import OperationDescriptor
from aws_blocks.errors import BlockError
from aws_blocks.execution.pipeline import run_operation, run_operation_async
from aws_blocks.execution.publisher import Emit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Block:
    descriptor: OperationDescriptor
    context: AppContext

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def name(self) -> str:
        return self.descriptor.name

    def on_event(
        self,
        inputs: Mapping[str, Any],
        app_config: Mapping[str, Any],
        emit: Emit,
    ) -> dict[str, Any]:
        try:
            app = AppConfig.from_mapping(app_config)
            invocation = InvocationConfig.from_input(inputs)
            return run_operation(
                self.descriptor,
                invocation,
                app.base_credentials(),
                emit,
                endpoint=app.endpoint,
                resolver=self.context.resolver,
                settings=self.context.settings,
            )
        except BlockError as exc:
            logger.warning("Block %s failed at %s stage: %s", self.id, exc.stage.value, exc)
            raise

    async def on_event_async(
        self,
        inputs: Mapping[str, Any],
        app_config: Mapping[str, Any],
        emit: Emit,
    ) -> dict[str, Any]:
        try:
            app = AppConfig.from_mapping(app_config)
            invocation = InvocationConfig.from_input(inputs)
            return await run_operation_async(
                self.descriptor,
                invocation,
                app.base_credentials(),
                emit,
                endpoint=app.endpoint,
                resolver=self.context.resolver,
                settings=self.context.settings,
            )
        except BlockError as exc:
            logger.warning("Block %s failed at %s stage: %s", self.id, exc.stage.value, exc)
            raise


def get_block(block_id: str, context: AppContext | None = None) -> Block:
    context = context or get_app_context()
    return Block(descriptor=context.catalog.get(block_id), context=context)


def list_blocks(group: str | None = None, context: AppContext | None = None) -> list[Block]:
    context = context or get_app_context()
    return [
        Block(descriptor=descriptor, context=context)
        for descriptor in context.catalog.list_operations(group)
    ]
