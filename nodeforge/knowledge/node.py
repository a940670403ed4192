"""Graph values: nodes, parent references and relationships."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class NodeRef(BaseModel, frozen=True):
    """Points at a parent node by type and identifying properties.

    The referenced node's ID is recomputed from ``properties``, so they must
    include every identifying property of ``node_type``.
    """

    node_type: str
    properties: dict[str, Any] = Field(default_factory=dict)


class GraphNode(BaseModel):
    """A node ready to be written to the knowledge graph."""

    id: str = ""
    type: str
    properties: dict[str, Any] = Field(default_factory=dict)
    content: str = ""
    parent: NodeRef | None = None
    mission_id: str = ""
    agent_name: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("type")
    @classmethod
    def _type_required(cls, value: str) -> str:
        if not value.strip():
            msg = "node type is required"
            raise ValueError(msg)
        return value

    @property
    def has_parent(self) -> bool:
        return self.parent is not None

    def with_id(self, node_id: str) -> GraphNode:
        self.id = node_id
        return self

    def with_property(self, key: str, value: Any) -> GraphNode:
        self.properties[key] = value
        self.updated_at = datetime.now(UTC)
        return self

    def with_properties(self, properties: dict[str, Any]) -> GraphNode:
        """Replace all properties."""
        self.properties = dict(properties)
        self.updated_at = datetime.now(UTC)
        return self

    def with_content(self, content: str) -> GraphNode:
        self.content = content
        return self

    def belongs_to(self, node_type: str, **identifying: Any) -> GraphNode:
        """Declare the parent node this node hangs off."""
        self.parent = NodeRef(node_type=node_type, properties=identifying)
        return self


class Relationship(BaseModel):
    """A directed edge between two node IDs."""

    from_id: str
    to_id: str
    type: str
    properties: dict[str, Any] = Field(default_factory=dict)
    bidirectional: bool = False

    @field_validator("from_id", "to_id", "type")
    @classmethod
    def _not_empty(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            msg = f"relationship {info.field_name} cannot be empty"
            raise ValueError(msg)
        return value

    def with_property(self, key: str, value: Any) -> Relationship:
        self.properties[key] = value
        return self
