"""Domain value types for block invocations."""

from aws_blocks.domain.credentials import AWSCredentials
from aws_blocks.domain.invocation import AppConfig, InvocationConfig
from aws_blocks.domain.operations import OperationDescriptor

__all__ = [
    "AWSCredentials",
    "AppConfig",
    "InvocationConfig",
    "OperationDescriptor",
]
