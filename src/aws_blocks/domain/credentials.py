"""Credential value type shared by the resolver and the client factory."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AWSCredentials:
    """Immutable AWS credential set.

    Either the platform's long-lived keys or a temporary triple minted by
    STS, in which case ``expiration`` and ``assumed_role_arn`` are set.
    """

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None
    expiration: datetime | None = None
    assumed_role_arn: str | None = None

    @property
    def is_temporary(self) -> bool:
        return self.assumed_role_arn is not None

    def session_kwargs(self) -> dict[str, str | None]:
        return {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key,
            "aws_session_token": self.session_token,
        }

    def __repr__(self) -> str:
        suffix = f", assumed_role_arn={self.assumed_role_arn!r}" if self.assumed_role_arn else ""
        return f"AWSCredentials(access_key_id={self.access_key_id[:8]}***{suffix})"
