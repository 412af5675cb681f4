"""
Pocket Setup Catalog

Per-service setup metadata: which keys a service needs, how to obtain them
and which command proves the setup works. Loaded once from the packaged
services.yaml.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from pocket_cli.registry.exceptions import RegistryError, UnknownServiceError
from pocket_cli.registry.logging_config import get_logger

logger = get_logger("catalog")

DATA_PACKAGE = "pocket_cli.registry"
SERVICES_FILE = "services.yaml"


@dataclass(frozen=True)
class KeyInfo:
    """One credential or setting a service reads from the store."""
    key: str
    description: str
    required: bool = True
    example: str = ""

    def to_dict(self, is_set: Optional[bool] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "key": self.key,
            "desc": self.description,
            "required": self.required,
        }
        if is_set is not None:
            data["set"] = is_set
        if self.example:
            data["example"] = self.example
        return data


@dataclass(frozen=True)
class ServiceDefinition:
    """Setup metadata for one service."""
    service: str
    name: str
    keys: Tuple[KeyInfo, ...] = field(default_factory=tuple)
    setup_guide: str = ""
    test_command: str = ""

    @property
    def key_names(self) -> List[str]:
        return [k.key for k in self.keys]

    @property
    def required_keys(self) -> List[str]:
        return [k.key for k in self.keys if k.required]

    def owns(self, key: str) -> bool:
        return key in self.key_names


def _parse_service(entry: Dict[str, Any]) -> ServiceDefinition:
    keys = tuple(
        KeyInfo(
            key=k["key"],
            description=k.get("desc", ""),
            required=bool(k.get("required", True)),
            example=str(k.get("example", "")),
        )
        for k in entry.get("keys") or []
    )
    return ServiceDefinition(
        service=entry["service"],
        name=entry.get("name", entry["service"]),
        keys=keys,
        setup_guide=entry.get("setup_guide", ""),
        test_command=entry.get("test_cmd", ""),
    )


def load_services(text: Optional[str] = None) -> Tuple[ServiceDefinition, ...]:
    """Parse service definitions from YAML (default: the packaged file).

    Raises:
        RegistryError: If the document is malformed
    """
    if text is None:
        text = resources.files(DATA_PACKAGE).joinpath("data").joinpath(SERVICES_FILE).read_text(encoding="utf-8")

    try:
        document = yaml.safe_load(text) or {}
        services = tuple(_parse_service(entry) for entry in document.get("services") or [])
    except (yaml.YAMLError, KeyError, TypeError, AttributeError) as e:
        raise RegistryError(f"Invalid service catalog: {e}") from e

    logger.debug("Loaded %d service definitions", len(services))
    return services


def validate_catalog(services: Sequence[ServiceDefinition]) -> None:
    """Check the catalog is internally consistent.

    Every service id is unique, every service declares at least one key and
    no key appears twice within a service.

    Raises:
        RegistryError: Listing every problem found
    """
    problems = []
    seen = set()

    for svc in services:
        if svc.service in seen:
            problems.append(f"duplicate service id: {svc.service}")
        seen.add(svc.service)

        if not svc.keys:
            problems.append(f"service {svc.service} declares no keys")

        names = svc.key_names
        for key in sorted(set(names)):
            if names.count(key) > 1:
                problems.append(f"service {svc.service} declares key {key} twice")

    if problems:
        raise RegistryError("Service catalog is inconsistent", problems)


class SetupCatalog:
    """Lookup over the immutable table of service definitions."""

    def __init__(self, services: Optional[Sequence[ServiceDefinition]] = None):
        """Initialize the catalog.

        Args:
            services: Service table (default: the packaged catalog)
        """
        self._services = tuple(services) if services is not None else load_services()
        validate_catalog(self._services)
        self._by_id = {svc.service: svc for svc in self._services}

    def __contains__(self, service: str) -> bool:
        return service in self._by_id

    def get(self, service: str) -> Optional[ServiceDefinition]:
        """Look up a service. Returns None when it is unknown."""
        return self._by_id.get(service)

    def require(self, service: str) -> ServiceDefinition:
        """Look up a service, raising UnknownServiceError when it is unknown."""
        svc = self.get(service)
        if svc is None:
            raise UnknownServiceError(service, [s.service for s in self._services])
        return svc

    def list(self) -> List[ServiceDefinition]:
        """All services in declaration order."""
        return list(self._services)

    def validate_key_ownership(self, service: str, key: str) -> bool:
        """True iff key is one of the keys the service declares."""
        svc = self.get(service)
        return svc is not None and svc.owns(key)

    def services_for_key(self, key: str) -> List[str]:
        """Ids of every service that declares key."""
        return [svc.service for svc in self._services if svc.owns(key)]


@lru_cache(maxsize=None)
def get_catalog() -> SetupCatalog:
    """The packaged catalog, built once per process."""
    return SetupCatalog()
