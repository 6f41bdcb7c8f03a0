"""Error taxonomy for block invocations.

Every failure that leaves an invocation is a ``BlockError`` tagged with the
stage that failed, so the platform can tell a misconfigured role trust policy
apart from a genuine service-side error.
"""

from __future__ import annotations

from enum import Enum


class ErrorStage(str, Enum):
    CONFIG = "config"
    CREDENTIAL = "credential"
    OPERATION = "operation"
    SERIALIZATION = "serialization"


class BlockError(Exception):
    """Base class for failures of a single block invocation."""

    stage: ErrorStage = ErrorStage.CONFIG

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "type": type(self).__name__,
            "stage": self.stage.value,
            "code": self.code,
            "message": self.message,
        }
        payload.update(self._context())
        return payload

    def _context(self) -> dict[str, object]:
        return {}


class ConfigurationError(BlockError):
    """Raised for invalid input detected before any network call."""

    stage = ErrorStage.CONFIG

    def __init__(self, message: str, code: str = "invalid_config", field: str | None = None) -> None:
        super().__init__(message, code)
        self.field = field

    def _context(self) -> dict[str, object]:
        return {"field": self.field} if self.field else {}


class CredentialResolutionError(BlockError):
    """Raised when STS role assumption fails."""

    stage = ErrorStage.CREDENTIAL

    def __init__(self, message: str, code: str, role_arn: str) -> None:
        super().__init__(message, code)
        self.role_arn = role_arn

    def __str__(self) -> str:
        return f"Failed to assume role {self.role_arn}: {self.message}"

    def _context(self) -> dict[str, object]:
        return {"role_arn": self.role_arn}


class OperationError(BlockError):
    """Raised when the target service call fails."""

    stage = ErrorStage.OPERATION

    def __init__(
        self,
        message: str,
        code: str,
        service: str,
        operation: str,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message, code)
        self.service = service
        self.operation = operation
        self.http_status = http_status

    def __str__(self) -> str:
        return f"{self.service}:{self.operation} failed ({self.code}): {self.message}"

    def _context(self) -> dict[str, object]:
        context: dict[str, object] = {"service": self.service, "operation": self.operation}
        if self.http_status is not None:
            context["http_status"] = self.http_status
        return context


class SerializationError(BlockError):
    """Raised when a response cannot be materialized for emission."""

    stage = ErrorStage.SERIALIZATION

    def __init__(self, message: str, code: str = "serialization_failed", path: str = "") -> None:
        super().__init__(message, code)
        self.path = path

    def _context(self) -> dict[str, object]:
        return {"path": self.path} if self.path else {}
