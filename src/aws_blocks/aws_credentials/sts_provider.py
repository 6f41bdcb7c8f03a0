"""STS AssumeRole credential resolution.

A block either runs with the platform's own credentials or, when an
``assumeRoleArn`` is configured, with a temporary credential triple minted
by STS ``AssumeRole`` for that single invocation. Nothing is cached: every
delegated invocation assumes the role again.

The role session name is ``<prefix>-<epoch millis>``. Names are not
guaranteed unique across concurrent invocations; STS accepts duplicates.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
import time
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from aws_blocks.config import Settings, load_settings
from aws_blocks.domain.credentials import AWSCredentials
from aws_blocks.errors import CredentialResolutionError
from aws_blocks.execution.aws_client import create_client

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]

_ERROR_CODES = {
    "AccessDenied": "access_denied",
    "AccessDeniedException": "access_denied",
    "ExpiredToken": "expired_token",
    "ExpiredTokenException": "expired_token",
    "InvalidClientTokenId": "invalid_client_token",
    "SignatureDoesNotMatch": "invalid_client_token",
    "RegionDisabledException": "region_disabled",
    "MalformedPolicyDocument": "policy_error",
    "PackedPolicyTooLarge": "policy_too_large",
    "Throttling": "throttled",
    "ThrottlingException": "throttled",
}


def build_session_name(prefix: str, now: float | None = None) -> str:
    """Session name for one AssumeRole call, e.g. ``flows-session-1718000000000``."""
    millis = int((time.time() if now is None else now) * 1000)
    return _sanitize_session_name(f"{prefix}-{millis}")


def _sanitize_session_name(name: str) -> str:
    """Sanitize for STS (2-64 chars, alphanumeric and ``=,.@-``)."""
    safe = re.sub(r"[^a-zA-Z0-9=,.@-]", "-", name)
    safe = re.sub(r"-+", "-", safe).strip("-")
    if len(safe) > 64:
        suffix = hashlib.sha256(name.encode()).hexdigest()[:8]
        safe = safe[:55] + "-" + suffix
    return safe if len(safe) >= 2 else "session-" + safe


class CredentialResolver:
    """Decides which credential set a block presents to its service client."""

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: ClientFactory = create_client,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory

    @property
    def settings(self) -> Settings:
        return self._settings or load_settings()

    def resolve(
        self,
        region: str,
        assume_role_arn: str | None,
        base_credentials: AWSCredentials,
        endpoint_override: str | None = None,
    ) -> AWSCredentials:
        """Return ``base_credentials`` unchanged, or temporary credentials for the role.

        Raises:
            CredentialResolutionError: STS rejected the request or could not
                be reached. Base credentials are never substituted.
        """
        if not assume_role_arn:
            return base_credentials
        return self._assume_role(region, assume_role_arn, base_credentials, endpoint_override)

    async def resolve_async(
        self,
        region: str,
        assume_role_arn: str | None,
        base_credentials: AWSCredentials,
        endpoint_override: str | None = None,
    ) -> AWSCredentials:
        if not assume_role_arn:
            return base_credentials
        return await asyncio.to_thread(
            self._assume_role,
            region,
            assume_role_arn,
            base_credentials,
            endpoint_override,
        )

    def _assume_role(
        self,
        region: str,
        role_arn: str,
        base_credentials: AWSCredentials,
        endpoint_override: str | None,
    ) -> AWSCredentials:
        settings = self.settings
        sts = self._client_factory(
            "sts",
            region,
            base_credentials,
            endpoint_override,
            settings,
        )
        session_name = build_session_name(settings.aws.session_name_prefix)

        params: dict[str, Any] = {
            "RoleArn": role_arn,
            "RoleSessionName": session_name,
        }
        if settings.aws.assume_role_duration_seconds is not None:
            params["DurationSeconds"] = settings.aws.assume_role_duration_seconds

        try:
            response = sts.assume_role(**params)
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "Unknown")
            error_message = exc.response.get("Error", {}).get("Message", str(exc))
            logger.warning(
                "STS failed: role=%s, session=%s, error=%s: %s",
                role_arn,
                session_name,
                error_code,
                error_message,
            )
            raise CredentialResolutionError(
                error_message,
                code=_ERROR_CODES.get(error_code, "sts_error"),
                role_arn=role_arn,
            ) from exc
        except BotoCoreError as exc:
            logger.warning("STS unreachable: role=%s, error=%s", role_arn, exc)
            raise CredentialResolutionError(
                str(exc), code="sts_unreachable", role_arn=role_arn
            ) from exc

        creds = response.get("Credentials") or {}
        missing = [
            key
            for key in ("AccessKeyId", "SecretAccessKey", "SessionToken")
            if not creds.get(key)
        ]
        if missing:
            raise CredentialResolutionError(
                f"AssumeRole response missing {', '.join(missing)}",
                code="invalid_response",
                role_arn=role_arn,
            )

        assumed = response.get("AssumedRoleUser") or {}
        logger.info("Assumed role: %s, session=%s", role_arn, session_name)

        return AWSCredentials(
            access_key_id=creds["AccessKeyId"],
            secret_access_key=creds["SecretAccessKey"],
            session_token=creds["SessionToken"],
            expiration=creds.get("Expiration"),
            assumed_role_arn=assumed.get("Arn") or role_arn,
        )


def resolve_credentials(
    region: str,
    assume_role_arn: str | None,
    base_credentials: AWSCredentials,
    endpoint_override: str | None = None,
) -> AWSCredentials:
    """Module-level shortcut using a resolver with default settings."""
    return CredentialResolver().resolve(
        region, assume_role_arn, base_credentials, endpoint_override
    )
