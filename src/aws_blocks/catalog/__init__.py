"""Registry of the published operation blocks."""

from aws_blocks.catalog.registry import DEFAULT_CATALOG_PATH, OperationCatalog, load_catalog

__all__ = ["DEFAULT_CATALOG_PATH", "OperationCatalog", "load_catalog"]
