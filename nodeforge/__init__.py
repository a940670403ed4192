"""Deterministic node identity and integrity checks for security knowledge graphs."""

from __future__ import annotations

__version__ = "1.0.0"

from nodeforge.core.facade import AdmittedNode, IntegrityEngine  # noqa: E402
from nodeforge.domain.validation import (  # noqa: E402
    NodeValidator,
    ValidationIssue,
    ValidationResult,
)
from nodeforge.knowledge.errors import (  # noqa: E402
    FieldConstraintError,
    InvalidQueryError,
    InvalidScopeError,
    MissingIdentifyingPropertiesError,
    NodeforgeError,
    NodeTypeNotRegisteredError,
    NodeValidationError,
    ParentRequiredError,
    UnrepresentableValueError,
)
from nodeforge.knowledge.identity import DeterministicIdGenerator  # noqa: E402
from nodeforge.knowledge.node import GraphNode, NodeRef, Relationship  # noqa: E402
from nodeforge.knowledge.query import MissionScope, Query  # noqa: E402
from nodeforge.knowledge.registry import NodeTypeRegistry  # noqa: E402
from nodeforge.knowledge.taxonomy import ParentRelationship, Taxonomy  # noqa: E402

__all__ = [
    "AdmittedNode",
    "DeterministicIdGenerator",
    "FieldConstraintError",
    "GraphNode",
    "IntegrityEngine",
    "InvalidQueryError",
    "InvalidScopeError",
    "MissingIdentifyingPropertiesError",
    "MissionScope",
    "NodeRef",
    "NodeTypeNotRegisteredError",
    "NodeTypeRegistry",
    "NodeValidationError",
    "NodeValidator",
    "NodeforgeError",
    "ParentRelationship",
    "ParentRequiredError",
    "Query",
    "Relationship",
    "Taxonomy",
    "UnrepresentableValueError",
    "ValidationIssue",
    "ValidationResult",
    "__version__",
]
