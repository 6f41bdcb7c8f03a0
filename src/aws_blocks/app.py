"""Application context assembly."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from aws_blocks.aws_credentials.sts_provider import CredentialResolver
from aws_blocks.catalog.registry import OperationCatalog, load_catalog
from aws_blocks.config import Settings, load_settings


@dataclass
class AppContext:
    """Process-wide, read-only dependencies.

    Holds no per-invocation state: credentials and clients are created fresh
    for every invocation.
    """

    settings: Settings
    catalog: OperationCatalog
    resolver: CredentialResolver


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    settings = load_settings()
    catalog = load_catalog(settings.catalog.path)
    return AppContext(
        settings=settings,
        catalog=catalog,
        resolver=CredentialResolver(settings),
    )
