"""Core node types and their validation rules."""

from __future__ import annotations

from nodeforge.domain.nodes import (
    CORE_NODE_MODELS,
    CertificateNode,
    CoreNode,
    DomainNode,
    EndpointNode,
    EvidenceNode,
    FindingNode,
    HostNode,
    PortNode,
    ServiceNode,
    SubdomainNode,
    TechnologyNode,
)
from nodeforge.domain.validation import (
    CORE_NODE_TYPES,
    IssueKind,
    NodeValidator,
    ValidationIssue,
    ValidationResult,
    is_core_type,
)

__all__ = [
    "CORE_NODE_MODELS",
    "CORE_NODE_TYPES",
    "CertificateNode",
    "CoreNode",
    "DomainNode",
    "EndpointNode",
    "EvidenceNode",
    "FindingNode",
    "HostNode",
    "IssueKind",
    "NodeValidator",
    "PortNode",
    "ServiceNode",
    "SubdomainNode",
    "TechnologyNode",
    "ValidationIssue",
    "ValidationResult",
    "is_core_type",
]
