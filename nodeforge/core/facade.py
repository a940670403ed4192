"""Integrity engine composing the registry, taxonomy, generator and validator."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from nodeforge.config import Settings
from nodeforge.domain.validation import (
    IssueKind,
    NodeValidator,
    ValidationIssue,
    ValidationResult,
)
from nodeforge.knowledge.errors import NodeValidationError
from nodeforge.knowledge.identity import DeterministicIdGenerator
from nodeforge.knowledge.node import GraphNode, NodeRef, Relationship
from nodeforge.knowledge.query import Query
from nodeforge.knowledge.registry import NodeTypeRegistry
from nodeforge.knowledge.taxonomy import Taxonomy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmittedNode:
    """A validated node with its ID and, for child types, the parent edge."""

    node: GraphNode
    parent_edge: Relationship | None = None

    @property
    def id(self) -> str:
        return self.node.id


class IntegrityEngine:
    """Entry point for identity and integrity checks.

    Build one per process and pass it to whatever needs it::

        engine = IntegrityEngine.from_settings(Settings.load())
        engine.generate_id("host", {"ip": "10.0.0.1"})

    Tests construct their own with ``IntegrityEngine(registry=..., taxonomy=...)``.
    """

    def __init__(
        self,
        registry: NodeTypeRegistry | None = None,
        taxonomy: Taxonomy | None = None,
        *,
        log_bypassed_types: bool = True,
    ) -> None:
        self.registry = registry or NodeTypeRegistry.default()
        self.taxonomy = taxonomy or Taxonomy.default()
        self.generator = DeterministicIdGenerator(self.registry)
        self.validator = NodeValidator(self.taxonomy, log_bypassed_types=log_bypassed_types)

        unregistered = [
            t for t in self.taxonomy.node_types() if not self.registry.is_registered(t)
        ]
        if unregistered:
            logger.warning(
                "Taxonomy types without identifying properties: %s", ", ".join(unregistered),
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> IntegrityEngine:
        registry = NodeTypeRegistry.default()
        if settings.registry.extra_node_types:
            registry = registry.extended(settings.registry.extra_node_types)
        taxonomy = Taxonomy.default(max_depth=settings.taxonomy.max_depth)
        return cls(
            registry,
            taxonomy,
            log_bypassed_types=settings.validation.log_bypassed_types,
        )

    def generate_id(self, node_type: str, properties: Mapping[str, Any]) -> str:
        return self.generator.generate(node_type, properties)

    def validate_node(
        self, node_type: str, properties: Mapping[str, Any], has_parent: bool,
    ) -> ValidationResult:
        return self.validator.validate_node(node_type, properties, has_parent)

    def validate_query(self, query: Query) -> Query:
        """Raise InvalidScopeError / InvalidQueryError, else return the query."""
        query.check()
        return query

    def admit(
        self,
        node_type: str,
        properties: Mapping[str, Any],
        parent: NodeRef | None = None,
    ) -> AdmittedNode:
        """Validate a candidate node, then compute its ID and parent edge.

        For child types the parent's ID is computed from ``parent`` and written
        to the child's reference field before the child's own ID is derived.
        Raises NodeValidationError or a registry error; nothing is returned
        for a node that fails.
        """
        result = self.validate_node(node_type, properties, has_parent=parent is not None)
        result.raise_for_errors()

        props = dict(properties)
        parent_id = ""
        rel = self.taxonomy.get_parent_relationship(node_type)
        if parent is not None and rel is not None:
            if parent.node_type != rel.parent_type:
                issue = ValidationIssue(
                    kind=IssueKind.PARENT_MISMATCH,
                    field=rel.ref_field,
                    constraint=f"parent:{rel.parent_type}",
                    message=(
                        f"{node_type} parent must be {rel.parent_type}, "
                        f"got {parent.node_type}"
                    ),
                )
                raise NodeValidationError(node_type, [issue])
            parent_id = self.generate_id(parent.node_type, parent.properties)
            props[rel.ref_field] = parent_id

        node_id = self.generate_id(node_type, props)
        node = GraphNode(id=node_id, type=node_type, properties=props, parent=parent)

        edge = None
        if parent_id and rel is not None:
            edge = self.taxonomy.parent_edge(node_type, node_id, parent_id)
        logger.debug("Admitted %s", node_id)
        return AdmittedNode(node=node, parent_edge=edge)
