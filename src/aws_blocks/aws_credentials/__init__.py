"""AWS credential resolution."""

from aws_blocks.aws_credentials.sts_provider import (
    CredentialResolver,
    build_session_name,
    resolve_credentials,
)

__all__ = ["CredentialResolver", "build_session_name", "resolve_credentials"]
