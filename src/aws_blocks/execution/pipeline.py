"""The generic invocation pipeline shared by every block.

resolve credentials -> construct client -> invoke one operation -> publish.
Each stage strictly precedes the next; a failure in any stage ends the
invocation without emitting.
"""

from __future__ import annotations

import logging
from typing import Any

from aws_blocks.aws_credentials.sts_provider import CredentialResolver
from aws_blocks.config import Settings, load_settings
from aws_blocks.domain.credentials import AWSCredentials
from aws_blocks.domain.invocation import InvocationConfig
from aws_blocks.domain.operations import OperationDescriptor
from aws_blocks.errors import ConfigurationError
from aws_blocks.execution.aws_client import (
    create_client,
    create_client_async,
    invoke_operation,
    invoke_operation_async,
    validate_operation,
)
from aws_blocks.execution.publisher import Emit, ResponsePublisher
from aws_blocks.execution.results import classify_result

logger = logging.getLogger(__name__)


def _check_invocation(descriptor: OperationDescriptor, invocation: InvocationConfig) -> None:
    validate_operation(descriptor.service, descriptor.operation)
    missing = descriptor.missing_parameters(invocation.parameters)
    if missing:
        raise ConfigurationError(
            f"{descriptor.id} is missing required parameter(s): {', '.join(missing)}",
            code="missing_parameters",
            field=missing[0],
        )


def run_operation(
    descriptor: OperationDescriptor,
    invocation: InvocationConfig,
    base_credentials: AWSCredentials,
    emit: Emit,
    *,
    endpoint: str | None = None,
    resolver: CredentialResolver | None = None,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Run one block invocation and return the emitted payload.

    ``endpoint`` is the platform-level endpoint; the invocation's own
    ``endpoint_override`` takes precedence over it.
    """
    settings = settings or load_settings()
    resolver = resolver or CredentialResolver(settings)
    endpoint_url = invocation.effective_endpoint(endpoint)

    _check_invocation(descriptor, invocation)
    logger.info(
        "Running %s (region=%s, delegated=%s)",
        descriptor.id,
        invocation.region,
        bool(invocation.assume_role_arn),
    )

    credentials = resolver.resolve(
        invocation.region,
        invocation.assume_role_arn,
        base_credentials,
        endpoint_url,
    )
    client = create_client(
        descriptor.service,
        invocation.region,
        credentials,
        endpoint_url,
        settings,
    )
    response = invoke_operation(
        client,
        descriptor.service,
        descriptor.operation,
        invocation.parameters,
    )
    publisher = ResponsePublisher(emit, settings)
    return publisher.publish(classify_result(response, descriptor))


async def run_operation_async(
    descriptor: OperationDescriptor,
    invocation: InvocationConfig,
    base_credentials: AWSCredentials,
    emit: Emit,
    *,
    endpoint: str | None = None,
    resolver: CredentialResolver | None = None,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Async twin of :func:`run_operation`; ``emit`` may be a coroutine function."""
    settings = settings or load_settings()
    resolver = resolver or CredentialResolver(settings)
    endpoint_url = invocation.effective_endpoint(endpoint)

    _check_invocation(descriptor, invocation)
    logger.info(
        "Running %s (region=%s, delegated=%s)",
        descriptor.id,
        invocation.region,
        bool(invocation.assume_role_arn),
    )

    credentials = await resolver.resolve_async(
        invocation.region,
        invocation.assume_role_arn,
        base_credentials,
        endpoint_url,
    )
    client = await create_client_async(
        descriptor.service,
        invocation.region,
        credentials,
        endpoint_url,
        settings,
    )
    response = await invoke_operation_async(
        client,
        descriptor.service,
        descriptor.operation,
        invocation.parameters,
    )
    publisher = ResponsePublisher(emit, settings)
    return await publisher.publish_async(classify_result(response, descriptor))
