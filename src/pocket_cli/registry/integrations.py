"""
Pocket Integration Registry

Static table of every integration Pocket knows about: what it is, which group
it belongs to, whether it needs credentials, and which setup service holds
them. Loaded once from the packaged integrations.yaml and validated against
the setup catalog.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from pocket_cli.registry.catalog import DATA_PACKAGE, SetupCatalog, get_catalog
from pocket_cli.registry.exceptions import RegistryError, UnknownIntegrationGroupError
from pocket_cli.registry.logging_config import get_logger
from pocket_cli.registry.readiness import NO_AUTH, READY, resolve

logger = get_logger("integrations")

INTEGRATIONS_FILE = "integrations.yaml"


@dataclass(frozen=True)
class GroupInfo:
    """A category of integrations."""
    id: str
    name: str
    desc: str = ""


@dataclass(frozen=True)
class Integration:
    """One integration as declared in the registry."""
    id: str
    name: str
    group: str
    description: str = ""
    auth_needed: bool = False
    commands: Tuple[str, ...] = field(default_factory=tuple)
    setup_ref: Optional[str] = None

    def to_dict(self, status: Optional[str] = None) -> Dict[str, Any]:
        """Render for the output envelope, with the derived status if given."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "group": self.group,
            "desc": self.description,
            "auth_needed": self.auth_needed,
        }
        if status is not None:
            data["status"] = status
        data["commands"] = list(self.commands)
        if self.setup_ref:
            data["setup_cmd"] = f"pocket setup show {self.setup_ref}"
        return data


def load_integrations(
    text: Optional[str] = None
) -> Tuple[Tuple[GroupInfo, ...], Tuple[Integration, ...]]:
    """Parse groups and integrations from YAML (default: the packaged file).

    Raises:
        RegistryError: If the document is malformed
    """
    if text is None:
        text = resources.files(DATA_PACKAGE).joinpath("data").joinpath(INTEGRATIONS_FILE).read_text(encoding="utf-8")

    try:
        document = yaml.safe_load(text) or {}
        groups = tuple(
            GroupInfo(id=g["id"], name=g.get("name", g["id"]), desc=g.get("desc", ""))
            for g in document.get("groups") or []
        )
        integrations = tuple(
            Integration(
                id=entry["id"],
                name=entry.get("name", entry["id"]),
                group=entry["group"],
                description=entry.get("desc", ""),
                auth_needed=bool(entry.get("auth_needed", False)),
                commands=tuple(entry.get("commands") or []),
                setup_ref=entry.get("setup_ref"),
            )
            for entry in document.get("integrations") or []
        )
    except (yaml.YAMLError, KeyError, TypeError, AttributeError) as e:
        raise RegistryError(f"Invalid integration registry: {e}") from e

    logger.debug("Loaded %d integrations in %d groups", len(integrations), len(groups))
    return groups, integrations


def validate_registry(
    groups: Sequence[GroupInfo],
    integrations: Sequence[Integration],
    catalog: SetupCatalog
) -> None:
    """Check the registry against itself and the setup catalog.

    Ids are unique, every integration is in a declared group, and every
    integration needing auth names a setup service the catalog knows.

    Raises:
        RegistryError: Listing every problem found
    """
    problems = []
    group_ids = {g.id for g in groups}
    seen = set()

    for integration in integrations:
        if integration.id in seen:
            problems.append(f"duplicate integration id: {integration.id}")
        seen.add(integration.id)

        if integration.group not in group_ids:
            problems.append(f"integration {integration.id} has unknown group: {integration.group}")

        if integration.auth_needed:
            if not integration.setup_ref:
                problems.append(f"integration {integration.id} needs auth but has no setup_ref")
            elif catalog.get(integration.setup_ref) is None:
                problems.append(
                    f"integration {integration.id} refers to unknown service: {integration.setup_ref}"
                )

    if problems:
        raise RegistryError("Integration registry is inconsistent", problems)


class IntegrationRegistry:
    """Queries over the immutable integration table."""

    def __init__(
        self,
        catalog: Optional[SetupCatalog] = None,
        groups: Optional[Sequence[GroupInfo]] = None,
        integrations: Optional[Sequence[Integration]] = None
    ):
        """Initialize and validate the registry.

        Args:
            catalog: Setup catalog used to resolve setup_ref (default: packaged)
            groups: Group table (default: packaged)
            integrations: Integration table (default: packaged)
        """
        self.catalog = catalog or get_catalog()

        if groups is None or integrations is None:
            default_groups, default_integrations = load_integrations()
            groups = default_groups if groups is None else groups
            integrations = default_integrations if integrations is None else integrations

        self._groups = tuple(groups)
        self._integrations = tuple(integrations)
        validate_registry(self._groups, self._integrations, self.catalog)
        self._by_id = {i.id: i for i in self._integrations}

    @property
    def group_ids(self) -> List[str]:
        return [g.id for g in self._groups]

    def list(self) -> List[Integration]:
        """Every integration in declaration order."""
        return list(self._integrations)

    def get(self, integration_id: str) -> Optional[Integration]:
        return self._by_id.get(integration_id)

    def filter(self, group: Optional[str] = None, no_auth_only: bool = False) -> List[Integration]:
        """Integrations in a group and/or not needing auth.

        Raises:
            UnknownIntegrationGroupError: If group is not a declared group
        """
        if group is not None and group not in self.group_ids:
            raise UnknownIntegrationGroupError(group, self.group_ids)

        result = []
        for integration in self._integrations:
            if group is not None and integration.group != group:
                continue
            if no_auth_only and integration.auth_needed:
                continue
            result.append(integration)
        return result

    def status(self, integration: Integration, values: Mapping[str, str]) -> str:
        return resolve(integration, self.catalog, values)

    def ready_only(self, values: Mapping[str, str]) -> List[Integration]:
        """Integrations usable right now: no auth, or credentials complete."""
        return [i for i in self._integrations if self.status(i, values) in (NO_AUTH, READY)]

    def groups(self) -> List[Dict[str, Any]]:
        """Groups in canonical order with their integration counts."""
        counts: Dict[str, int] = {}
        for integration in self._integrations:
            counts[integration.group] = counts.get(integration.group, 0) + 1

        return [
            {"id": g.id, "name": g.name, "desc": g.desc, "count": counts.get(g.id, 0)}
            for g in self._groups
        ]

    def commands_by_group(self, group: Optional[str] = None) -> List[Dict[str, Any]]:
        """Example commands of every integration, bucketed by group.

        Raises:
            UnknownIntegrationGroupError: If group is not a declared group
        """
        integrations = self.filter(group=group)
        result = []
        for g in self._groups:
            commands = [cmd for i in integrations if i.group == g.id for cmd in i.commands]
            if commands:
                result.append({"group": g.id, "commands": commands})
        return result


@lru_cache(maxsize=None)
def get_registry() -> IntegrationRegistry:
    """The packaged registry, built and validated once per process."""
    return IntegrationRegistry(get_catalog())
