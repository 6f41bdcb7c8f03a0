"""Operation registry: block id to operation descriptor."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import yaml

from aws_blocks.catalog.models import CatalogFile
from aws_blocks.domain.operations import OperationDescriptor
from aws_blocks.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().with_name("operations.yaml")


class OperationCatalog:
    def __init__(self, descriptors: Iterable[OperationDescriptor]) -> None:
        self._operations: dict[str, OperationDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._operations:
                raise ValueError(f"Duplicate operation id in catalog: {descriptor.id}")
            self._operations[descriptor.id] = descriptor

    def __len__(self) -> int:
        return len(self._operations)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._operations

    def get(self, block_id: str) -> OperationDescriptor:
        try:
            return self._operations[block_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown block: {block_id!r}", code="unknown_block", field="block"
            ) from None

    def list_operations(self, group: str | None = None) -> list[OperationDescriptor]:
        if group is None:
            return list(self._operations.values())
        return [op for op in self._operations.values() if op.group == group]

    def groups(self) -> list[str]:
        return sorted({op.group for op in self._operations.values()})

    def services(self) -> list[str]:
        return sorted({op.service for op in self._operations.values()})

    def find_operation(self, service: str, operation: str) -> OperationDescriptor | None:
        for descriptor in self._operations.values():
            if descriptor.service == service and descriptor.operation == operation:
                return descriptor

        # Case-insensitive, kebab-case and snake_case spellings
        target_svc = service.lower()
        target_op = _normalize(operation)
        for descriptor in self._operations.values():
            if descriptor.service.lower() == target_svc and _normalize(descriptor.operation) == target_op:
                return descriptor
        return None

    def search(self, query: str, service: str | None = None) -> list[OperationDescriptor]:
        terms = query.lower().split()
        if not terms:
            return []

        results = []
        for descriptor in self._operations.values():
            if service and descriptor.service != service:
                continue
            haystack = " ".join(
                (
                    descriptor.id.lower(),
                    descriptor.service.lower(),
                    descriptor.operation.lower(),
                    descriptor.name.lower(),
                )
            )
            if all(term in haystack for term in terms):
                results.append(descriptor)
        return results


def _normalize(name: str) -> str:
    return name.lower().replace("-", "").replace("_", "")


def load_catalog(path: str | Path | None = None) -> OperationCatalog:
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    if not catalog_path.exists():
        raise FileNotFoundError(f"Operation catalog not found: {catalog_path}")
    with catalog_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    catalog_file = CatalogFile.from_yaml(data)
    catalog = OperationCatalog(entry.to_descriptor() for entry in catalog_file.operations)
    logger.info("Loaded %d operations from %s", len(catalog), catalog_path)
    return catalog
