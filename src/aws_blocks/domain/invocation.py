"""Per-invocation configuration supplied by the workflow platform."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aws_blocks.domain.credentials import AWSCredentials
from aws_blocks.errors import ConfigurationError

RESERVED_KEYS = frozenset({"region", "assumeRoleArn", "endpointOverride"})
PARAMETERS_KEY = "operationParameters"

_REGION_RE = re.compile(r"^[a-z]{2}(-[a-z0-9]+)+-\d+$")
_ROLE_ARN_RE = re.compile(r"^arn:[a-z-]+:iam::[^:]*:role/.+$")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, str):
        return value.strip()
    return value


def _validate_endpoint(value: str | None) -> str | None:
    if value is None:
        return None
    if not value.startswith(("http://", "https://")):
        raise ValueError("endpoint must be an http:// or https:// URL")
    return value.rstrip("/")


def _configuration_error(exc: ValidationError, code: str) -> ConfigurationError:
    first = exc.errors()[0] if exc.errors() else {}
    loc = first.get("loc") or ()
    field = ".".join(str(part) for part in loc) or None
    message = first.get("msg") or str(exc)
    return ConfigurationError(
        f"{field}: {message}" if field else message,
        code=code,
        field=field,
    )


class AppConfig(BaseModel):
    """Platform-level settings shared by every invocation of an app."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    access_key_id: str = Field(alias="accessKeyId", min_length=1)
    secret_access_key: str = Field(alias="secretAccessKey", min_length=1, repr=False)
    session_token: str | None = Field(default=None, alias="sessionToken", repr=False)
    endpoint: str | None = Field(default=None)

    @field_validator("session_token", "endpoint", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("endpoint")
    @classmethod
    def _check_endpoint(cls, value: str | None) -> str | None:
        return _validate_endpoint(value)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AppConfig":
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise _configuration_error(exc, "invalid_app_config") from exc

    def base_credentials(self) -> AWSCredentials:
        return AWSCredentials(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
        )


class InvocationConfig(BaseModel):
    """Core invocation metadata kept apart from operation parameters."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    region: str
    assume_role_arn: str | None = Field(default=None, alias="assumeRoleArn")
    endpoint_override: str | None = Field(default=None, alias="endpointOverride")
    parameters: dict[str, Any] = Field(default_factory=dict, alias=PARAMETERS_KEY)

    @field_validator("region", mode="before")
    @classmethod
    def _check_region(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None:
            raise ValueError("region is required")
        if not isinstance(value, str) or not _REGION_RE.match(value):
            raise ValueError(f"not a valid AWS region identifier: {value!r}")
        return value

    @field_validator("assume_role_arn", mode="before")
    @classmethod
    def _check_role_arn(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None:
            return None
        if not isinstance(value, str) or not _ROLE_ARN_RE.match(value):
            raise ValueError(f"not an IAM role ARN: {value!r}")
        return value

    @field_validator("endpoint_override", mode="before")
    @classmethod
    def _check_endpoint_override(cls, value: Any) -> Any:
        return _validate_endpoint(_blank_to_none(value))

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> "InvocationConfig":
        """Build from platform input.

        ``region``, ``assumeRoleArn`` and ``endpointOverride`` are reserved.
        Operation parameters come from a nested ``operationParameters``
        mapping and/or from every remaining top-level key.
        """
        nested = data.get(PARAMETERS_KEY) or {}
        if not isinstance(nested, Mapping):
            raise ConfigurationError(
                f"{PARAMETERS_KEY} must be an object",
                code="invalid_parameters",
                field=PARAMETERS_KEY,
            )
        parameters = dict(nested)
        for key, value in data.items():
            if key in RESERVED_KEYS or key == PARAMETERS_KEY:
                continue
            if key in parameters:
                raise ConfigurationError(
                    f"Parameter '{key}' given both inline and in {PARAMETERS_KEY}",
                    code="duplicate_parameter",
                    field=key,
                )
            parameters[key] = value

        core = {key: data[key] for key in RESERVED_KEYS if key in data}
        core.setdefault("region", None)
        try:
            return cls.model_validate({**core, PARAMETERS_KEY: parameters})
        except ValidationError as exc:
            raise _configuration_error(exc, "invalid_invocation") from exc

    def effective_endpoint(self, platform_endpoint: str | None = None) -> str | None:
        """The invocation's override, else the app-level endpoint, else regional resolution."""
        return self.endpoint_override or platform_endpoint
