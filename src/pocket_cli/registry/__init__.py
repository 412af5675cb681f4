"""
Pocket Integration Registry & Credential Readiness Engine

Which integrations exist, which credentials each needs, whether those are
set, and how to set them.
"""

from pocket_cli.registry.catalog import SetupCatalog, get_catalog
from pocket_cli.registry.credentials import CredentialStore
from pocket_cli.registry.flow import SetupFlow
from pocket_cli.registry.integrations import IntegrationRegistry, get_registry
from pocket_cli.registry.output import OutputWriter

__all__ = [
    "CredentialStore",
    "IntegrationRegistry",
    "OutputWriter",
    "SetupCatalog",
    "SetupFlow",
    "get_catalog",
    "get_registry",
]
