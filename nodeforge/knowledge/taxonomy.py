"""Taxonomy graph of root node types and required parent relationships."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from pydantic import BaseModel, field_validator

from nodeforge.knowledge.errors import TaxonomyConfigError
from nodeforge.knowledge.node import Relationship

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 8


class ParentRelationship(BaseModel, frozen=True):
    """A child type's required link to its parent.

    The child stores the parent's ID in ``ref_field``; the edge from parent to
    child carries the ``relationship`` label.
    """

    child_type: str
    parent_type: str
    ref_field: str
    parent_field: str = "id"
    relationship: str
    required: bool = True

    @field_validator("child_type", "parent_type", "ref_field", "relationship")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return value

    @field_validator("parent_field")
    @classmethod
    def _parent_field_is_id(cls, value: str) -> str:
        if value != "id":
            msg = f"parent_field must be 'id', got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("required")
    @classmethod
    def _always_required(cls, value: bool) -> bool:
        if not value:
            msg = "optional parent relationships are not supported"
            raise ValueError(msg)
        return value


def _rel(child: str, parent: str, ref_field: str, relationship: str) -> ParentRelationship:
    return ParentRelationship(
        child_type=child, parent_type=parent, ref_field=ref_field, relationship=relationship,
    )


DEFAULT_ROOT_NODE_TYPES: frozenset[str] = frozenset({
    "host",
    "domain",
    "technology",
    "certificate",
    "finding",
    "mission",
    "technique",
})

DEFAULT_PARENT_RELATIONSHIPS: dict[str, ParentRelationship] = {
    r.child_type: r for r in (
        # Execution
        _rel("mission_run", "mission", "mission_id", "HAS_RUN"),
        _rel("agent_run", "mission_run", "mission_run_id", "CONTAINS_AGENT_RUN"),
        _rel("tool_execution", "agent_run", "agent_run_id", "EXECUTED_TOOL"),
        _rel("llm_call", "agent_run", "agent_run_id", "MADE_CALL"),
        # Assets
        _rel("subdomain", "domain", "domain_id", "HAS_SUBDOMAIN"),
        _rel("port", "host", "host_id", "HAS_PORT"),
        _rel("service", "port", "port_id", "RUNS_SERVICE"),
        _rel("endpoint", "service", "service_id", "HAS_ENDPOINT"),
        # Findings
        _rel("evidence", "finding", "finding_id", "HAS_EVIDENCE"),
    )
}


class Taxonomy:
    """Fixed hierarchy of node types.

    Every child type points to exactly one parent type; walking parents from
    any child ends at a root. Structural problems in the tables raise
    TaxonomyConfigError from the constructor, never from lookups.
    """

    def __init__(
        self,
        roots: Iterable[str],
        relationships: Mapping[str, ParentRelationship],
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if max_depth < 1:
            msg = f"max_depth must be at least 1, got {max_depth}"
            raise TaxonomyConfigError(msg)
        self._max_depth = max_depth
        self._roots = frozenset(roots)
        self._relationships: Mapping[str, ParentRelationship] = MappingProxyType(
            dict(relationships),
        )
        self._check_roots()
        self._check_relationships()
        self._check_chains()

        children: dict[str, list[str]] = defaultdict(list)
        for child, rel in self._relationships.items():
            children[rel.parent_type].append(child)
        self._children = MappingProxyType({p: tuple(sorted(c)) for p, c in children.items()})
        logger.debug(
            "Taxonomy loaded: %d roots, %d child types",
            len(self._roots), len(self._relationships),
        )

    @classmethod
    def default(cls, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Taxonomy:
        return cls(DEFAULT_ROOT_NODE_TYPES, DEFAULT_PARENT_RELATIONSHIPS, max_depth=max_depth)

    # ------------------------------------------------------------------
    # Construction checks
    # ------------------------------------------------------------------

    def _check_roots(self) -> None:
        for root in self._roots:
            if not isinstance(root, str) or not root.strip():
                msg = f"root node type must be a non-empty string, got {root!r}"
                raise TaxonomyConfigError(msg)
        overlap = sorted(self._roots & set(self._relationships))
        if overlap:
            msg = f"types cannot be both root and child: {', '.join(overlap)}"
            raise TaxonomyConfigError(msg)

    def _check_relationships(self) -> None:
        known = self._roots | set(self._relationships)
        labels: dict[str, str] = {}
        for child, rel in self._relationships.items():
            if rel.child_type != child:
                msg = f"relationship keyed {child!r} declares child_type {rel.child_type!r}"
                raise TaxonomyConfigError(msg)
            if rel.parent_type not in known:
                msg = f"{child} references unknown parent type {rel.parent_type!r}"
                raise TaxonomyConfigError(msg)
            previous = labels.get(rel.relationship)
            if previous is not None:
                msg = (
                    f"relationship label {rel.relationship!r} used by both "
                    f"{previous} and {child}"
                )
                raise TaxonomyConfigError(msg)
            labels[rel.relationship] = child

    def _check_chains(self) -> None:
        for child in self._relationships:
            seen = [child]
            current = child
            while current not in self._roots:
                current = self._relationships[current].parent_type
                if current in seen:
                    cycle = " -> ".join([*seen, current])
                    msg = f"cycle in parent chain: {cycle}"
                    raise TaxonomyConfigError(msg)
                seen.append(current)
                if len(seen) - 1 > self._max_depth:
                    msg = (
                        f"parent chain of {child} exceeds {self._max_depth} hops: "
                        f"{' -> '.join(seen)}"
                    )
                    raise TaxonomyConfigError(msg)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def is_root_node_type(self, node_type: str) -> bool:
        return node_type in self._roots

    def is_child_node_type(self, node_type: str) -> bool:
        return node_type in self._relationships

    def is_known(self, node_type: str) -> bool:
        return node_type in self._roots or node_type in self._relationships

    def get_parent_relationship(self, node_type: str) -> ParentRelationship | None:
        """Copy of the parent requirement, or None for roots and unknown types."""
        rel = self._relationships.get(node_type)
        return rel.model_copy() if rel is not None else None

    def parent_chain(self, node_type: str) -> list[str]:
        """``node_type`` followed by its ancestors up to the root."""
        if not self.is_known(node_type):
            return []
        chain = [node_type]
        while chain[-1] in self._relationships:
            chain.append(self._relationships[chain[-1]].parent_type)
        return chain

    def children_of(self, parent_type: str) -> list[str]:
        return list(self._children.get(parent_type, ()))

    def root_node_types(self) -> list[str]:
        return sorted(self._roots)

    def relationships(self) -> list[ParentRelationship]:
        return [self._relationships[c].model_copy() for c in sorted(self._relationships)]

    def node_types(self) -> list[str]:
        return sorted(self._roots | set(self._relationships))

    def parent_edge(self, child_type: str, child_id: str, parent_id: str) -> Relationship:
        """Edge from the parent node to the child, labelled per the taxonomy."""
        rel = self._relationships.get(child_type)
        if rel is None:
            msg = f"{child_type!r} has no parent relationship"
            raise ValueError(msg)
        return Relationship(from_id=parent_id, to_id=child_id, type=rel.relationship)
