"""Catalog file models for operations.yaml."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from aws_blocks.domain.operations import OperationDescriptor


def _ensure_list(v: Any) -> list:
    """Convert None to empty list, pass through lists."""
    if v is None:
        return []
    return v


class CatalogEntry(BaseModel):
    id: str = Field(min_length=3, pattern=r"^[a-z0-9-]+\.[A-Za-z0-9]+$")
    group: str = Field(min_length=1)
    service: str = Field(min_length=1)
    operation: str = Field(min_length=1, pattern=r"^[A-Z][A-Za-z0-9]*$")
    name: str = Field(min_length=1)
    stream_bearing: bool = Field(default=False)
    required: list[str] = Field(default_factory=list)

    @field_validator("required", mode="before")
    @classmethod
    def _validate_required(cls, v: Any) -> list:
        return _ensure_list(v)

    def to_descriptor(self) -> OperationDescriptor:
        return OperationDescriptor(
            id=self.id,
            group=self.group,
            service=self.service,
            operation=self.operation,
            name=self.name,
            stream_bearing=self.stream_bearing,
            required=tuple(self.required),
        )


class CatalogFile(BaseModel):
    version: int = Field(default=1)
    operations: list[CatalogEntry] = Field(default_factory=list)

    @field_validator("operations", mode="before")
    @classmethod
    def _validate_operations(cls, v: Any) -> list:
        return _ensure_list(v)

    @classmethod
    def from_yaml(cls, data: dict[str, object]) -> "CatalogFile":
        return cls.model_validate(data)
