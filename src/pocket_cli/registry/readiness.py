"""
Pocket Readiness Resolver

Derives integration and service status from the credential store. Status is
never persisted; it is recomputed from the current values on every call.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping

from pocket_cli.registry.catalog import ServiceDefinition, SetupCatalog

# Integration status
NO_AUTH = "no_auth"
READY = "ready"
NEEDS_SETUP = "needs_setup"

# Service status
STATUS_MISSING = "missing"
STATUS_PARTIAL = "partial"
STATUS_READY = "ready"

STATUS_ORDER = {STATUS_MISSING: 0, STATUS_PARTIAL: 1, STATUS_READY: 2}


@dataclass(frozen=True)
class ServiceStatus:
    """Compact setup status of one service."""
    service: str
    name: str
    status: str
    missing: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if not self.missing:
            del data["missing"]
        return data


def _is_set(values: Mapping[str, str], key: str) -> bool:
    return bool(values.get(key))


def resolve(integration, catalog: SetupCatalog, values: Mapping[str, str]) -> str:
    """Compute the status of one integration.

    Integrations without auth are always ``no_auth``. Otherwise the
    integration is ``ready`` only when every required key of its setup
    service holds a non-empty value.
    """
    if not integration.auth_needed:
        return NO_AUTH

    svc = catalog.get(integration.setup_ref) if integration.setup_ref else None
    if svc is None:
        # Rejected at load by validate_registry
        return NEEDS_SETUP

    if all(_is_set(values, key) for key in svc.required_keys):
        return READY
    return NEEDS_SETUP


def resolve_service(service_def: ServiceDefinition, values: Mapping[str, str]) -> ServiceStatus:
    """Compute missing/partial/ready for a service.

    Only required keys count. A service whose required keys are all unset is
    ``missing``, one with none unset is ``ready``, anything between is
    ``partial``.
    """
    required = service_def.required_keys
    missing = sum(1 for key in required if not _is_set(values, key))

    if missing == 0:
        status = STATUS_READY
    elif missing == len(required):
        status = STATUS_MISSING
    else:
        status = STATUS_PARTIAL

    return ServiceStatus(
        service=service_def.service,
        name=service_def.name,
        status=status,
        missing=missing,
    )


def sort_statuses(statuses: List[ServiceStatus]) -> List[ServiceStatus]:
    """Order missing, then partial, then ready. Stable within each bucket."""
    return sorted(statuses, key=lambda s: STATUS_ORDER.get(s.status, len(STATUS_ORDER)))
