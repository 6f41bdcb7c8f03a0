"""AWS client factory and single-operation invoker."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

import boto3
import botocore.session
from botocore import xform_name
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ParamValidationError,
    UnknownServiceError,
)

from aws_blocks.config import Settings, load_settings
from aws_blocks.domain.credentials import AWSCredentials
from aws_blocks.errors import ConfigurationError, OperationError
from aws_blocks.utils.masking import redact_sensitive_fields

logger = logging.getLogger(__name__)


def create_client(
    service: str,
    region: str,
    credentials: AWSCredentials,
    endpoint_override: str | None = None,
    settings: Settings | None = None,
) -> Any:
    """Build a client bound to one service, region, credential set and endpoint.

    No network traffic happens here. A fresh ``boto3.Session`` is created per
    call so clients never share credential state across invocations.
    """
    if not service:
        raise ConfigurationError(
            "A service identifier is required", code="unsupported_service", field="service"
        )
    if not region:
        raise ConfigurationError("region is required", code="invalid_invocation", field="region")

    settings = settings or load_settings()
    session = boto3.Session(region_name=region, **credentials.session_kwargs())

    client_kwargs: dict[str, Any] = {
        "config": _get_service_config(service, settings, endpoint_override),
    }
    if endpoint_override:
        client_kwargs["endpoint_url"] = endpoint_override

    try:
        client = session.client(service, **client_kwargs)
    except UnknownServiceError as exc:
        raise ConfigurationError(
            f"Unsupported AWS service: {service!r}",
            code="unsupported_service",
            field="service",
        ) from exc

    logger.debug(
        "Created %s client (region=%s, endpoint=%s)",
        service,
        region,
        endpoint_override or "default",
    )
    return client


def _get_service_config(
    service: str,
    settings: Settings,
    endpoint_override: str | None = None,
) -> Config:
    base: dict[str, object] = {
        "read_timeout": settings.execution.sdk_timeout_seconds,
        "connect_timeout": settings.execution.sdk_timeout_seconds,
    }
    if service == "s3":
        base["request_checksum_calculation"] = "when_required"
        base["response_checksum_validation"] = "when_required"
        if endpoint_override:
            # Emulators rarely resolve virtual-hosted bucket names.
            base["s3"] = {"addressing_style": "path"}
    return Config(**base)


@lru_cache(maxsize=64)
def _operation_methods(service: str) -> frozenset[str]:
    # Service models are static package data; reading them needs no credentials.
    try:
        model = botocore.session.get_session().get_service_model(service)
    except UnknownServiceError as exc:
        raise ConfigurationError(
            f"Unsupported AWS service: {service!r}",
            code="unsupported_service",
            field="service",
        ) from exc
    return frozenset(xform_name(name) for name in model.operation_names)


def validate_operation(service: str, operation: str) -> None:
    """Check offline that ``service`` exists and exposes ``operation``.

    Raises:
        ConfigurationError: ``unsupported_service`` or ``unsupported_operation``.
    """
    if not service:
        raise ConfigurationError(
            "A service identifier is required", code="unsupported_service", field="service"
        )
    if xform_name(operation) not in _operation_methods(service):
        raise ConfigurationError(
            f"{service} has no operation '{operation}'",
            code="unsupported_operation",
            field="operation",
        )


def invoke_operation(
    client: Any,
    service: str,
    operation: str,
    parameters: Mapping[str, Any],
) -> Any:
    """Send exactly one ``operation`` request over ``client``.

    Args:
        client: A client from :func:`create_client`.
        service: Service identifier, used to tag errors.
        operation: API operation name (``ListObjectsV2``) or its snake_case
            method name (``list_objects_v2``).
        parameters: Operation parameters, passed through unchanged.

    Returns:
        The raw SDK response.

    Raises:
        ConfigurationError: The client has no such operation, or botocore
            rejected the parameters before sending.
        OperationError: The service or the transport failed.
    """
    method_name = xform_name(operation)
    if not hasattr(client, method_name):
        raise ConfigurationError(
            f"{service} client has no operation '{operation}'",
            code="unsupported_operation",
            field="operation",
        )

    logger.info("Invoking %s:%s", service, operation)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Parameters for %s:%s: %s",
            service,
            operation,
            redact_sensitive_fields(dict(parameters)),
        )

    method = getattr(client, method_name)
    try:
        return method(**parameters)
    except ParamValidationError as exc:
        raise ConfigurationError(
            str(exc), code="invalid_parameters", field="parameters"
        ) from exc
    except ClientError as exc:
        error = exc.response.get("Error", {})
        metadata = exc.response.get("ResponseMetadata", {})
        code = error.get("Code", "Unknown")
        logger.warning("%s:%s failed: %s", service, operation, code)
        raise OperationError(
            error.get("Message") or str(exc),
            code=code,
            service=service,
            operation=operation,
            http_status=metadata.get("HTTPStatusCode"),
        ) from exc
    except BotoCoreError as exc:
        logger.warning("%s:%s transport failure: %s", service, operation, exc)
        raise OperationError(
            str(exc),
            code=type(exc).__name__,
            service=service,
            operation=operation,
        ) from exc


async def create_client_async(
    service: str,
    region: str,
    credentials: AWSCredentials,
    endpoint_override: str | None = None,
    settings: Settings | None = None,
) -> Any:
    return await asyncio.to_thread(
        create_client, service, region, credentials, endpoint_override, settings
    )


async def invoke_operation_async(
    client: Any,
    service: str,
    operation: str,
    parameters: Mapping[str, Any],
) -> Any:
    return await asyncio.to_thread(invoke_operation, client, service, operation, parameters)
