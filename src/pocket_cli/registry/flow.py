"""
Pocket Setup Flow

Guided onboarding: list services that still need credentials, show the
instructions for one, save a value, report the new status.
"""

from typing import Any, Dict, List, Optional

from pocket_cli.registry.catalog import SetupCatalog
from pocket_cli.registry.credentials import CredentialStore
from pocket_cli.registry.exceptions import AmbiguousKeyError, InvalidKeyError
from pocket_cli.registry.logging_config import get_logger
from pocket_cli.registry.readiness import STATUS_READY, resolve_service, sort_statuses

logger = get_logger("setup")


class SetupFlow:
    """Setup commands over a catalog and a credential store."""

    def __init__(self, catalog: SetupCatalog, store: CredentialStore):
        self.catalog = catalog
        self.store = store

    def list(self, show_all: bool = False) -> List[Dict[str, Any]]:
        """Status of every service, ordered missing, partial, ready.

        Ready services are left out unless show_all is set.
        """
        values = self.store.load()
        statuses = [resolve_service(svc, values) for svc in self.catalog.list()]
        if not show_all:
            statuses = [s for s in statuses if s.status != STATUS_READY]
        return [s.to_dict() for s in sort_statuses(statuses)]

    def show(self, service: str) -> Dict[str, Any]:
        """Definition of one service with per-key set flags. Read-only."""
        svc = self.catalog.require(service)
        values = self.store.load()
        status = resolve_service(svc, values)

        data: Dict[str, Any] = {
            "service": svc.service,
            "name": svc.name,
            "status": status.status,
            "keys": [k.to_dict(is_set=bool(values.get(k.key))) for k in svc.keys],
            "setup_guide": svc.setup_guide,
        }
        if svc.test_command:
            data["test_cmd"] = svc.test_command
        return data

    def set(self, service: str, key_or_value: str, value: Optional[str] = None) -> Dict[str, Any]:
        """Save one credential of a service.

        With a single positional the key is inferred, which only works for
        services that declare exactly one key.

        Raises:
            UnknownServiceError: If the service is not in the catalog
            AmbiguousKeyError: If the key cannot be inferred
            InvalidKeyError: If the key does not belong to the service
        """
        svc = self.catalog.require(service)

        if value is None:
            if len(svc.keys) != 1:
                raise AmbiguousKeyError(service, svc.key_names)
            key, value = svc.keys[0].key, key_or_value
        else:
            key = key_or_value

        if not self.catalog.validate_key_ownership(service, key):
            raise InvalidKeyError(
                f"Key '{key}' is not valid for service '{service}'",
                key=key,
                valid_keys=svc.key_names
            )

        self.store.set(key, value)
        logger.info("Saved %s for %s", key, service)

        status = resolve_service(svc, self.store.load())
        data: Dict[str, Any] = {
            "status": "saved",
            "service": service,
            "key": key,
            "service_status": status.status,
            "missing": status.missing,
        }
        if svc.test_command:
            data["test_cmd"] = svc.test_command
        return data
