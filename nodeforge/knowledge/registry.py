"""Node type registry."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from nodeforge.knowledge.errors import (
    MissingIdentifyingPropertiesError,
    NodeTypeNotRegisteredError,
    RegistryConfigError,
)
from nodeforge.knowledge.properties import is_blank

# Changing an entry changes every future ID of that type.
DEFAULT_IDENTIFYING_PROPERTIES: dict[str, tuple[str, ...]] = {
    # Assets
    "host": ("ip",),
    "port": ("host_id", "number", "protocol"),
    "service": ("port_id", "name"),
    "endpoint": ("service_id", "url", "method"),
    "domain": ("name",),
    "subdomain": ("parent_domain", "name"),
    "api": ("base_url",),
    "technology": ("name", "version"),
    "certificate": ("fingerprint",),
    "cloud_asset": ("provider", "resource_id"),
    # Findings
    "finding": ("mission_id", "fingerprint"),
    "evidence": ("finding_id", "type", "fingerprint"),
    "mitigation": ("finding_id", "title"),
    # Execution
    "mission": ("name", "timestamp"),
    "mission_run": ("mission_id", "run_number"),
    "agent_run": ("mission_id", "agent_name", "run_number"),
    "tool_execution": ("agent_run_id", "tool_name", "sequence"),
    "llm_call": ("agent_run_id", "sequence"),
    # Attack
    "technique": ("id",),
    "tactic": ("id",),
    # Intelligence
    "intelligence": ("mission_id", "title", "timestamp"),
}


class NodeTypeRegistry:
    """Maps node types to the ordered properties that form their natural key.

    The table is frozen at construction; every read returns copies, so
    instances can be shared between threads without locking.
    """

    def __init__(self, table: Mapping[str, Iterable[str]]) -> None:
        frozen: dict[str, tuple[str, ...]] = {}
        for node_type, properties in table.items():
            frozen[node_type] = _check_entry(node_type, properties)
        if not frozen:
            msg = "registry must define at least one node type"
            raise RegistryConfigError(msg)
        self._table: Mapping[str, tuple[str, ...]] = MappingProxyType(frozen)

    @classmethod
    def default(cls) -> NodeTypeRegistry:
        """Registry with the canonical node types."""
        return cls(DEFAULT_IDENTIFYING_PROPERTIES)

    @classmethod
    def for_testing(cls, table: Mapping[str, Iterable[str]]) -> NodeTypeRegistry:
        """Isolated registry for tests; shares nothing with other instances."""
        return cls(dict(table))

    def extended(
        self, extra: Mapping[str, Iterable[str]], *, replace: bool = False,
    ) -> NodeTypeRegistry:
        """New registry with additional node types.

        Redefining an existing type is rejected unless ``replace`` is set,
        because it changes every identifier of that type.
        """
        if not replace:
            clashes = sorted(set(extra) & set(self._table))
            if clashes:
                msg = f"node types already registered: {', '.join(clashes)}"
                raise RegistryConfigError(msg)
        merged: dict[str, Iterable[str]] = dict(self._table)
        merged.update(extra)
        return NodeTypeRegistry(merged)

    def get_identifying_properties(self, node_type: str) -> list[str]:
        props = self._table.get(node_type)
        if props is None:
            raise NodeTypeNotRegisteredError(node_type)
        return list(props)

    def is_registered(self, node_type: str) -> bool:
        return node_type in self._table

    def missing_properties(self, node_type: str, properties: Mapping[str, Any]) -> list[str]:
        """Identifying properties that are absent, null or blank strings."""
        return [
            name for name in self.get_identifying_properties(node_type)
            if name not in properties or is_blank(properties[name])
        ]

    def validate_properties(self, node_type: str, properties: Mapping[str, Any]) -> list[str]:
        """Return ``[]`` when every identifying property is present.

        Raises NodeTypeNotRegisteredError or MissingIdentifyingPropertiesError.
        """
        missing = self.missing_properties(node_type, properties)
        if missing:
            raise MissingIdentifyingPropertiesError(node_type, missing)
        return missing

    def all_node_types(self) -> list[str]:
        return sorted(self._table)

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._table

    def __len__(self) -> int:
        return len(self._table)


def _check_entry(node_type: str, properties: Iterable[str]) -> tuple[str, ...]:
    if not isinstance(node_type, str) or not node_type.strip():
        msg = f"node type must be a non-empty string, got {node_type!r}"
        raise RegistryConfigError(msg)
    if isinstance(properties, str):
        msg = f"identifying properties for {node_type!r} must be a list, not a string"
        raise RegistryConfigError(msg)
    props = tuple(properties)
    if not props:
        msg = f"node type {node_type!r} has no identifying properties"
        raise RegistryConfigError(msg)
    for name in props:
        if not isinstance(name, str) or not name.strip():
            msg = f"node type {node_type!r} has an empty identifying property name"
            raise RegistryConfigError(msg)
    if len(set(props)) != len(props):
        msg = f"node type {node_type!r} lists an identifying property twice"
        raise RegistryConfigError(msg)
    return props
